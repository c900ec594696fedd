import os

import matplotlib.pyplot as plt
import matplotlib.ticker as mticker

from reporting.search_report import history_frame


def _plot_scores(history_df, ax):
    cmap = plt.get_cmap("tab10")
    for thread, group in history_df.groupby("thread"):
        color = cmap(int(thread) % 10)
        ax.scatter(group.index, group["score"], s=8, alpha=0.4, color=color)
        ax.plot(group.index, group["score"].cummax(), color=color, linewidth=1.5,
                label=f"Thread {thread} best")
    ax.plot(history_df.index, history_df["best_so_far"], color="black", linewidth=1.0,
            linestyle="--", label="Global best")
    ax.set_title("Search Progress")
    ax.set_xlabel("Iteration")
    ax.set_ylabel("Score")
    ax.xaxis.set_major_locator(mticker.MaxNLocator(integer=True))
    ax.legend(loc="lower right", fontsize=7)
    ax.grid(True, alpha=0.3)


def _plot_best_history(search, ax):
    cmap = plt.get_cmap("tab10")
    for i, thread in enumerate(search.threads):
        scores = [p.score for p in thread.best_history]
        if scores:
            ax.step(range(1, len(scores) + 1), scores, where="post",
                    color=cmap(i % 10), label=f"Thread {i}")
    ax.set_title("Improvements per Thread")
    ax.set_xlabel("Improvement #")
    ax.set_ylabel("Best score")
    ax.xaxis.set_major_locator(mticker.MaxNLocator(integer=True))
    ax.legend(loc="lower right", fontsize=7)
    ax.grid(True, alpha=0.3)


def plot_search_progress(search, output_path):
    """Save a two-panel chart of scores over time and per-thread improvements."""
    history_df = history_frame(search)
    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(12, 5))

    if history_df.empty:
        ax1.text(0.5, 0.5, "No scored candidates", ha="center", va="center", transform=ax1.transAxes)
    else:
        _plot_scores(history_df, ax1)
    _plot_best_history(search, ax2)

    fig.tight_layout()
    directory = os.path.dirname(output_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    fig.savefig(output_path, dpi=150)
    return fig
