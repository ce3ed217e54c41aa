"""Tokenizer and parser throughput over representative formula shapes."""

from __future__ import annotations

import argparse
import json
import platform
import statistics
import timeit
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from formula_expr import ParseSuccess, parse, tokenize, walk

PROFILES: dict[str, dict[str, float | int]] = {
    "quick": {"rounds": 3, "min_round_s": 0.02},
    "full": {"rounds": 9, "min_round_s": 0.1},
}


@dataclass(frozen=True)
class Case:
    name: str
    source: str


@dataclass(frozen=True)
class Row:
    case: str
    stage: str
    chars: int
    items: int
    calls_per_round: int
    median_us: float
    best_us: float
    spread_pct: float
    items_per_ms: float


def _cases(chain_terms: int, nesting: int) -> list[Case]:
    return [
        Case("literal", "42"),
        Case("arithmetic", "price * qty * (1 - discount) + tax"),
        Case("conditional", 'status == "open" && due < TODAY() ? "overdue" : done ? "closed" : "pending"'),
        Case("member_chain", 'order.lines[0].product.tags[2].label & " / " & user.profile.name'),
        Case("object", '{id: row.id, total: SUM(row.items), meta: {ok: true, tags: ["a", "b"]}}'),
        Case("flat_sum", " + ".join(f"f{i}" for i in range(chain_terms))),
        Case("nested_parens", "(" * nesting + "x" + ")" * nesting),
    ]


def _item_count(stage: str, source: str) -> int:
    """Tokens produced, or AST nodes built, for one run of `stage`."""
    if stage == "tokenize":
        return len(tokenize(source).tokens)
    result = parse(source)
    if not isinstance(result, ParseSuccess):
        raise SystemExit(f"benchmark case does not parse: {source[:40]!r}: {result.error.message}")
    return sum(1 for _ in walk(result.ast))


def _measure(fn: Callable[[str], object], source: str, *, rounds: int, min_round_s: float) -> tuple[int, list[float]]:
    timer = timeit.Timer(lambda: fn(source))
    number, elapsed = timer.autorange()
    while elapsed < min_round_s:
        number *= 2
        elapsed = timer.timeit(number)
    per_call_us = [total / number * 1e6 for total in timer.repeat(repeat=rounds, number=number)]
    return number, per_call_us


def run(cases: list[Case], *, rounds: int, min_round_s: float) -> list[Row]:
    stages: dict[str, Callable[[str], object]] = {"tokenize": tokenize, "parse": parse}
    rows: list[Row] = []
    for stage, fn in stages.items():
        print(f"{stage}:")
        for case in cases:
            items = _item_count(stage, case.source)
            number, samples = _measure(fn, case.source, rounds=rounds, min_round_s=min_round_s)
            median = statistics.median(samples)
            spread = (max(samples) - min(samples)) / median * 100.0 if median else 0.0
            row = Row(
                case=case.name,
                stage=stage,
                chars=len(case.source),
                items=items,
                calls_per_round=number,
                median_us=median,
                best_us=min(samples),
                spread_pct=spread,
                items_per_ms=items / (median / 1e3) if median else 0.0,
            )
            rows.append(row)
            print(
                f"  {row.case:14} {row.median_us:10.2f} us  best {row.best_us:10.2f} us  "
                f"{row.items:5d} items  {row.items_per_ms:10.0f} items/ms  spread {row.spread_pct:5.1f}%"
            )
    return rows


def main() -> None:
    parser = argparse.ArgumentParser(description="Benchmark formula tokenization and parsing")
    parser.add_argument("--profile", choices=sorted(PROFILES), default="quick")
    parser.add_argument("--rounds", type=int, default=None, help="override timed rounds per case")
    parser.add_argument("--chain-terms", type=int, default=200, help="terms in the flat-sum case")
    parser.add_argument("--nesting", type=int, default=40, help="parenthesis depth in the nested case")
    parser.add_argument("--json-out", default="", help="optional path for machine-readable results")
    args = parser.parse_args()

    profile = PROFILES[args.profile]
    rounds = int(profile["rounds"] if args.rounds is None else args.rounds)
    min_round_s = float(profile["min_round_s"])

    rows = run(_cases(args.chain_terms, args.nesting), rounds=rounds, min_round_s=min_round_s)

    if args.json_out:
        payload = {
            "timestamp_utc": datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ"),
            "profile": args.profile,
            "rounds": rounds,
            "python": platform.python_version(),
            "platform": platform.platform(),
            "rows": [asdict(row) for row in rows],
        }
        outpath = Path(args.json_out)
        outpath.parent.mkdir(parents=True, exist_ok=True)
        outpath.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        print(f"wrote {outpath}")


if __name__ == "__main__":
    main()
