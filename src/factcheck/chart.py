"""Static comparison chart of regional GDP per capita.

Draws every region as a point sized by population, the national weighted
average (blue) and the average without the capital region (red) for each
country, and a dashed line at the reference region's value.
"""

import os

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd  # noqa: E402
from matplotlib.ticker import FixedLocator, NullFormatter, ScalarFormatter  # noqa: E402

from factcheck.config import FactCheckSettings  # noqa: E402
from factcheck.exceptions import ExportError  # noqa: E402
from factcheck.logging_config import create_logger  # noqa: E402
from factcheck.transform.aggregate import (  # noqa: E402
    capital_region_predicate,
    weighted_aggregate,
)

logger = create_logger(__name__)

NATIONAL_COLOR = "#4A90D9"
CAPITAL_COLOR = "#D9534F"
REGION_COLOR = "#7F7F7F"
REFERENCE_COLOR = "#666666"

Y_BREAKS = [30, 40, 50, 60, 70, 80, 90, 100, 150]
Y_LIMITS = (20, 200)


def build_chart_frame(records: pd.DataFrame, settings: FactCheckSettings) -> pd.DataFrame:
    """Records for the chart year at each country's plot level.

    Adds ``country_label`` and ``is_capital`` columns.
    """
    levels = records["country"].map(settings.plot_levels)
    frame = records[
        (records["year"] == settings.year)
        & (records["level"] == levels)
        & records["country"].isin(list(settings.countries))
    ].copy()
    frame["country_label"] = frame["country"].map(
        lambda code: settings.country_labels.get(code, code)
    )
    frame["is_capital"] = capital_region_predicate(settings.capital_prefixes)(frame)
    return frame.reset_index(drop=True)


def summarize_chart_frame(frame: pd.DataFrame, settings: FactCheckSettings) -> pd.DataFrame:
    """National and capital-excluded weighted averages per country."""
    keys = ["country", "country_label"]
    units = settings.units

    national = weighted_aggregate(frame, keys, units)[keys + ["gdp_pc", "n_regions"]]
    national = national.rename(columns={"gdp_pc": "national_avg"})

    without_capital = weighted_aggregate(
        frame, keys, units, exclude=capital_region_predicate(settings.capital_prefixes)
    )[keys + ["gdp_pc", "n_regions"]]
    without_capital = without_capital.rename(
        columns={"gdp_pc": "avg_excl_capital", "n_regions": "n_regions_excl"}
    )

    return national.merge(without_capital, on=keys, how="left")


def _point_sizes(pop: pd.Series) -> pd.Series:
    """Scale population (millions) to marker areas between 10 and 200."""
    millions = pop / 1e6
    span = millions.max() - millions.min()
    if not span or pd.isna(span):
        return pd.Series(60.0, index=pop.index)
    return 10 + 190 * (millions - millions.min()) / span


def render_chart(snapshot, settings: FactCheckSettings, output_path: str) -> str:
    """Draw the comparison chart from a loaded snapshot and save it as PNG.

    :param snapshot: Snapshot with ``per_capita`` and ``reference_value``
    :param settings: Analysis settings (year, plot levels, labels, prefixes)
    :param output_path: Destination PNG file
    :return: The path written
    :raises ExportError: If the image cannot be saved
    """
    frame = build_chart_frame(snapshot.per_capita, settings)
    summary = summarize_chart_frame(frame, settings)

    labels = [
        settings.country_labels.get(code, code)
        for code in settings.countries
        if code in set(frame["country"])
    ]

    fig, ax = plt.subplots(figsize=(10, 7))
    try:
        _draw(fig, ax, frame, summary, labels, snapshot.reference_value, settings)
        os.makedirs(os.path.dirname(os.path.abspath(output_path)), exist_ok=True)
        fig.savefig(output_path, dpi=150)
    except OSError as e:
        raise ExportError(f"Failed to save chart to {output_path}: {e}")
    finally:
        plt.close(fig)

    logger.info(f"Chart saved to {output_path}")
    return output_path


def _draw(fig, ax, frame, summary, labels, reference, settings: FactCheckSettings) -> None:
    """Plot points, average segments, reference line and labels onto ``ax``."""
    positions = {label: i for i, label in enumerate(labels)}

    if not frame.empty:
        xs = frame["country_label"].map(positions)
        colors = frame["is_capital"].map({True: CAPITAL_COLOR, False: REGION_COLOR})
        ax.scatter(
            xs.to_numpy(),
            frame["gdp_pc"].to_numpy(),
            s=_point_sizes(frame["pop"]).to_numpy(),
            c=colors.tolist(),
            alpha=0.5,
        )

    for row in summary.itertuples(index=False):
        x = positions[row.country_label]
        ax.hlines(row.national_avg, x - 0.3, x + 0.3, color=NATIONAL_COLOR, linewidth=3)
        ax.hlines(row.avg_excl_capital, x - 0.3, x + 0.3, color=CAPITAL_COLOR, linewidth=3)

    ax.axhline(reference, linestyle="--", color=REFERENCE_COLOR, linewidth=1)
    ax.text(
        len(labels) - 1 + 0.35,
        reference,
        settings.reference_label,
        ha="left",
        va="center",
        fontsize=8,
        color=REFERENCE_COLOR,
    )

    ax.set_yscale("log")
    ax.set_ylim(*Y_LIMITS)
    ax.yaxis.set_major_locator(FixedLocator(Y_BREAKS))
    ax.yaxis.set_major_formatter(ScalarFormatter())
    ax.yaxis.set_minor_formatter(NullFormatter())
    ax.set_xticks(range(len(labels)))
    ax.set_xticklabels(labels)
    ax.set_xlim(-0.6, len(labels) - 0.4 + 0.6)
    ax.set_ylabel("GDP per capita (thousands USD PPP)")
    ax.grid(axis="y", alpha=0.3)
    for side in ("top", "right"):
        ax.spines[side].set_visible(False)

    ax.set_title(
        "Britain's economy is highly London-centric. Without the capital,\n"
        f"the UK would be poorer per head than {settings.reference_label}",
        loc="left",
        fontsize=13,
        fontweight="bold",
    )
    fig.text(
        0.01,
        0.01,
        "Subnational GDP per capita ('000s of US dollars, PPP-adjusted, log scale)\n"
        f"Source: OECD regional accounts data, {settings.year}\n"
        "Blue line: National average | Red line: Average excluding entire capital region\n"
        "Red dots: Capital region sub-areas",
        ha="left",
        va="bottom",
        fontsize=8,
    )
    fig.tight_layout(rect=(0, 0.1, 1, 1))
