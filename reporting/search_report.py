# reporting/search_report.py

"""
Tabular and printed summaries of a tabu search run.

Kept out of tune_main.py so the same output can be reused from other callers
(e.g. notebooks driving run_search directly).
"""

import pandas as pd


def history_frame(search) -> pd.DataFrame:
    """
    One row per scored candidate: iteration, thread, score, running best and
    one column per parameter holding the decoded value.
    """
    rows = []
    for entry in search.history:
        row = {"iteration": entry["iteration"], "thread": entry["thread"], "score": entry["score"]}
        row.update(entry["values"])
        rows.append(row)
    if not rows:
        return pd.DataFrame(columns=["iteration", "thread", "score", "best_so_far"])
    df = pd.DataFrame(rows)
    df["best_so_far"] = df["score"].cummax()
    return df.set_index("iteration")


def thread_summary(search) -> pd.DataFrame:
    """Per-thread best score, evaluations, visited points and final state."""
    rows = []
    for i, thread in enumerate(search.threads):
        rows.append({
            "thread": i,
            "best_score": thread.best.score,
            "evaluations": thread.iterations,
            "visited": len(thread.tabu),
            "improvements": len(thread.best_history),
            "state": thread.state.name,
        })
    return pd.DataFrame(rows).set_index("thread") if rows else pd.DataFrame()


def print_search_results(result) -> None:
    """Print the SEARCH RESULTS block for a SearchResult returned by run_search()."""
    search = result.search
    summary = thread_summary(search)

    print(f"\n{'='*52}")
    print(f"  SEARCH RESULTS")
    print(f"{'='*52}")
    print(f"  Mode:             {type(search).__name__}")
    print(f"  Threads:          {len(search.threads):>12}")
    print(f"  Iterations:       {result.iterations:>12}")
    print(f"  Converged:        {str(result.finished):>12}")
    print(f"  Exhausted:        {str(result.exhausted):>12}")
    if result.best_score is not None:
        print(f"  Best score:       {result.best_score:>12.4f}")
    print(f"\n  Best parameters:")
    for name, value in result.best_values.items():
        print(f"    {name:<26} {value}")
    if not summary.empty:
        print(f"\n  Threads:")
        for i, row in summary.iterrows():
            best = "n/a" if pd.isna(row["best_score"]) else f"{row['best_score']:.4f}"
            print(
                f"    #{i:<3} best {best:>12}   {row['evaluations']:>6} evals   "
                f"{row['visited']:>6} visited   {row['state']}"
            )
    print(f"{'='*52}")
