"""Run the evaluation harness against a live procedure RAG server.

Usage:
    1. Seed data:          python scripts/seed_data.py
    2. Start the server:   python -m procedure_rag.main
    3. Run evaluation:     python scripts/run_eval.py [--base-url URL] [--output PATH]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from dataclasses import asdict
from pathlib import Path

# Add src to path (matching seed_data.py pattern)
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from procedure_rag.evaluation.metrics import (
    EvalCaseResult,
    compute_category_metrics,
    compute_metrics,
)
from procedure_rag.evaluation.runner import DEFAULT_BASE_URL, run_evaluation


def print_header(title: str) -> None:
    print(f"\n{'=' * 64}")
    print(f"  {title}")
    print(f"{'=' * 64}")


def print_summary(metrics: dict) -> None:
    print_header("EVALUATION SUMMARY")
    print(f"  Total cases:          {metrics['total_cases']}")
    print(f"  Valid cases:          {metrics['valid_cases']}")
    print(f"  Errors:               {metrics['error_count']}")
    print(f"  Gate accuracy:        {metrics['gate_accuracy']:.1%}")
    print(f"  False block rate:     {metrics['false_block_rate']:.1%}")
    print(f"  False pass rate:      {metrics['false_pass_rate']:.1%}")
    print(f"  Language accuracy:    {metrics['language_accuracy']:.1%}")
    print(f"  Article recall:       {metrics['article_recall']:.1%}")
    print(f"  Avg confidence:       {metrics['avg_confidence']:.4f}")
    print(f"  Avg latency:          {metrics['avg_latency_ms']:.0f} ms")


def print_category_breakdown(by_category: dict) -> None:
    print_header("PER-CATEGORY BREAKDOWN")
    header = (
        f"  {'Category':<16} {'Count':>5} {'Gate acc':>10} "
        f"{'Confidence':>12} {'Latency':>10} {'Pass':>10}"
    )
    print(header)
    print(f"  {'-' * 63}")
    for cat, m in sorted(by_category.items()):
        print(
            f"  {cat:<16} {m['count']:>5} "
            f"{m['gate_accuracy']:>9.1%} "
            f"{m['avg_confidence']:>11.4f} "
            f"{m['avg_latency_ms']:>8.0f}ms "
            f"{m['pass_rate']:>9.1%}"
        )


def print_case_details(results: list[EvalCaseResult]) -> None:
    print_header("INDIVIDUAL CASE RESULTS")
    for r in results:
        if r.error:
            status = "ERROR"
        elif r.gate_correct:
            status = "PASS"
        else:
            status = "FAIL"

        print(
            f"  [{status:>5}] {r.case_id:<16} | "
            f"lang={r.detected_language or '-':<3} gate={'pass' if r.quality_passed else 'block':<5} | "
            f"conf={r.confidence:.3f} | results={r.result_count}"
        )
        if r.articles_missing:
            print(f"         missing articles: {r.articles_missing}")
        if r.error:
            print(f"         error: {r.error}")


def save_results(results: list[EvalCaseResult], metrics: dict, output_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "metrics": metrics,
        "results": [asdict(r) for r in results],
    }
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, default=str, ensure_ascii=False)
    print(f"\nRaw results saved to {output_path}")


async def main(base_url: str, output_path: Path, dataset: Path | None, concurrency: int) -> None:
    print(f"Running evaluation against {base_url} ...")

    results = await run_evaluation(
        base_url=base_url, dataset_path=dataset, concurrency=concurrency
    )

    metrics = compute_metrics(results)
    by_category = compute_category_metrics(results)
    metrics["by_category"] = by_category

    print_summary(metrics)
    print_category_breakdown(by_category)
    print_case_details(results)

    save_results(results, metrics, output_path)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run procedure RAG evaluation harness")
    parser.add_argument(
        "--base-url",
        default=DEFAULT_BASE_URL,
        help=f"Base URL of the running server (default: {DEFAULT_BASE_URL})",
    )
    parser.add_argument(
        "--output",
        default="data/eval_results.json",
        help="Path to save raw results JSON (default: data/eval_results.json)",
    )
    parser.add_argument("--dataset", default=None, help="Path to an alternative dataset JSON")
    parser.add_argument("--concurrency", type=int, default=3)
    args = parser.parse_args()
    asyncio.run(
        main(
            args.base_url,
            Path(args.output),
            Path(args.dataset) if args.dataset else None,
            args.concurrency,
        )
    )
