from __future__ import annotations

"""
Radar Finder report generator
-----------------------------
This module generates a DOCX report from a list of radar records (usually
the current filtered list).

Design goals:
- Keep the finder usable even if report dependencies are missing (lazy imports).
- Choose charts that match the result set.
  Example: if the user filtered to ONE country, a "Top countries" chart says
  nothing, so we show the operator breakdown instead.
- The "map" is a plain lon/lat scatter of the projected points; no tiles.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple
import os
import tempfile
from collections import Counter

from .models import Record
from .normalize import (
    coordinates, normalize_band, normalize_country, normalize_status,
    operator_label, site_label,
)
from .projection import fit_bounds, to_map_points

UNKNOWN = "Unknown"


# -----------------------------
# Configuration / citation types
# -----------------------------

@dataclass
class DatasetCitation:
    """Upstream sources merged into the catalog file."""
    sources: Tuple[str, ...] = (
        "WMO Weather Radar Database (WRD), https://wrd.mgm.gov.tr",
        "EUMETNET OPERA radar database, https://www.eumetnet.eu/opera",
    )
    access_date_iso: str = "2026-10-19"
    file_name: Optional[str] = None
    file_note: Optional[str] = "Merged catalog produced by the offline ETL step."


@dataclass
class ReportConfig:
    """High-level knobs to control how the report is written."""
    title: str = "Weather Radar Finder Report"
    subtitle: str = "Offline radar catalog search (CLI)"
    dataset_name: str = "Merged WRD + OPERA radar catalog"
    citation: DatasetCitation = field(default_factory=DatasetCitation)

    # How many categories to show in bar charts
    top_n: int = 10

    # How many rows to show in the preview table
    max_rows_preview: int = 15

    # Current search/facets, shown in the summary
    query: str = ""
    facets_note: str = ""

    # Optional: list of CLI commands used to create the current result set
    command_log: Optional[List[str]] = None


def _count(values: Sequence[str]) -> Counter:
    return Counter(v if v else UNKNOWN for v in values)


# -----------------------------
# Main entry point used by CLI
# -----------------------------

def generate_docx_report(
    records: Sequence[Record],
    out_path: str,
    *,
    config: Optional[ReportConfig] = None,
    scope_label: str = "Current Result Set",
) -> str:
    """
    Generate a DOCX report + charts for a list of radar records.

    The catalog file is never modified; the report describes the in-memory
    selection only.
    """
    config = config or ReportConfig()

    # Lazy imports: only required when "report" is used.
    try:
        from docx import Document
        from docx.shared import Pt, Inches
        from docx.enum.text import WD_ALIGN_PARAGRAPH
    except ImportError as e:
        raise ImportError(
            "Missing dependency: python-docx.\n"
            "Install it with: python -m pip install python-docx"
        ) from e

    try:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
        import numpy as np
    except ImportError as e:
        raise ImportError(
            "Missing dependency: matplotlib (and numpy).\n"
            "Install with: python -m pip install matplotlib numpy"
        ) from e

    if not records:
        raise ValueError("No records to report on (result set is empty).")

    # -----------------------------
    # 1) Category counts + map points
    # -----------------------------
    c_band = _count([normalize_band(r.get("band")) for r in records])
    c_status = _count([normalize_status(r.get("status")) for r in records])
    c_country = _count([normalize_country(r) for r in records])
    c_operator = _count([operator_label(r) for r in records])

    points = to_map_points(records)
    bounds = fit_bounds(points)

    # -----------------------------
    # 2) Charts
    # -----------------------------
    # chart PNGs live only until the document is saved
    tmp = tempfile.TemporaryDirectory(prefix="radarfinder_report_")
    tmpdir = tmp.name
    # Each chart is: (title, file_path, why_this_chart)
    chart_paths: List[Tuple[str, str, str]] = []

    def _save(filename: str) -> str:
        path = os.path.join(tmpdir, filename)
        plt.tight_layout()
        plt.savefig(path, dpi=200)
        plt.close()
        return path

    def _bar(title: str, counts: Counter, why: str, filename: str) -> None:
        top = counts.most_common(config.top_n)
        plt.figure()
        plt.bar([k for k, _ in top], [v for _, v in top])
        plt.xticks(rotation=45, ha="right")
        plt.title(title)
        plt.ylabel("Radars")
        chart_paths.append((title, _save(filename), why))

    _bar(
        f"Radars by Band ({scope_label})",
        c_band,
        "Band is a small fixed set (S/C/X), so a bar per band compares them directly.",
        "bar_band.png",
    )
    _bar(
        f"Radars by Status ({scope_label})",
        c_status,
        "Status buckets are categorical; bars show how much of the network is operational.",
        "bar_status.png",
    )
    if len(c_country) > 1:
        _bar(
            f"Top {config.top_n} Countries by Number of Radars ({scope_label})",
            c_country,
            "Bar charts are ideal for comparing category counts (countries).",
            "top_countries.png",
        )
    elif len(c_operator) > 1:
        _bar(
            f"Top {config.top_n} Operators ({scope_label})",
            c_operator,
            "With a single country in scope, the operator split is the informative one.",
            "top_operators.png",
        )

    if points:
        lons = np.array([p.lon for p in points])
        lats = np.array([p.lat for p in points])
        title = f"Radar locations ({scope_label})"
        plt.figure(figsize=(8, 4.5))
        plt.scatter(lons, lats, s=8)
        plt.xlabel("Longitude")
        plt.ylabel("Latitude")
        plt.title(title)
        plt.grid(True, linewidth=0.3)
        chart_paths.append((
            title,
            _save("map_points.png"),
            "A lon/lat scatter is a tile-free stand-in for the map view.",
        ))

    # -----------------------------
    # 3) Build DOCX report
    # -----------------------------
    doc = Document()

    style = doc.styles["Normal"]
    style.font.name = "Calibri"
    style.font.size = Pt(11)

    def _center_title(text: str, size: int, bold: bool = False, italic: bool = False) -> None:
        p = doc.add_paragraph()
        r = p.add_run(text)
        r.bold = bold
        r.italic = italic
        r.font.size = Pt(size)
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER

    def _kv(key: str, value: str) -> None:
        p = doc.add_paragraph()
        r = p.add_run(f"{key}: ")
        r.bold = True
        p.add_run(value)

    _center_title(config.title, 22, bold=True)
    _center_title(config.subtitle, 12, italic=True)

    doc.add_paragraph("")
    _kv("Dataset", config.dataset_name)
    _kv("Scope", scope_label)
    _kv("Radars in scope", str(len(records)))
    _kv("Radars with coordinates", str(len(points)))
    if config.query:
        _kv("Search", config.query)
    if config.facets_note:
        _kv("Facets", config.facets_note)
    if bounds is not None:
        _kv("Extent (S, W, N, E)",
            f"{bounds.south:.2f}, {bounds.west:.2f}, {bounds.north:.2f}, {bounds.east:.2f}")

    doc.add_paragraph("")
    doc.add_heading("Data sources", level=1)
    cit = config.citation
    if cit.file_name:
        doc.add_paragraph(f"Data file used: {cit.file_name}")
    if cit.file_note:
        doc.add_paragraph(f"File note: {cit.file_note}")
    for src in cit.sources:
        doc.add_paragraph(f"{src} (accessed {cit.access_date_iso})", style="List Bullet")

    if config.command_log:
        doc.add_paragraph("")
        doc.add_heading("Command log (reproducibility)", level=1)
        doc.add_paragraph("These commands produced this result set:")
        for line in config.command_log:
            doc.add_paragraph(line, style="List Bullet")

    # Data completeness summary (missingness)
    doc.add_paragraph("")
    doc.add_heading("Data completeness", level=1)
    t2 = doc.add_table(rows=1, cols=3)
    t2.rows[0].cells[0].text = "Field"
    t2.rows[0].cells[1].text = "Available"
    t2.rows[0].cells[2].text = "Missing"

    def _add_missing_row(name: str, present) -> None:
        available = sum(1 for r in records if present(r))
        row = t2.add_row().cells
        row[0].text = name
        row[1].text = str(available)
        row[2].text = str(len(records) - available)

    _add_missing_row("Coordinates", lambda r: None not in coordinates(r))
    _add_missing_row("Band (S/C/X)", lambda r: normalize_band(r.get("band")) != "")
    _add_missing_row("Status", lambda r: normalize_status(r.get("status")) != "")
    _add_missing_row("Country", lambda r: normalize_country(r) != "")

    doc.add_paragraph("")
    doc.add_heading("Visualizations", level=1)
    for title, path, why in chart_paths:
        doc.add_paragraph(title)
        doc.add_picture(path, width=Inches(6.5))
        doc.add_paragraph("Why this graph is suitable: " + why)
        doc.add_paragraph("")

    doc.add_heading("Preview of first few radars", level=1)
    preview = list(records)[:config.max_rows_preview]
    t5 = doc.add_table(rows=1, cols=6)
    h = t5.rows[0].cells
    h[0].text = "Id"
    h[1].text = "Site"
    h[2].text = "Country"
    h[3].text = "Band"
    h[4].text = "Status"
    h[5].text = "Lat, Lon"
    for r in preview:
        lat, lon = coordinates(r)
        row = t5.add_row().cells
        row[0].text = str(r.get("id", ""))
        row[1].text = site_label(r, default="(no name)")
        row[2].text = normalize_country(r)
        row[3].text = normalize_band(r.get("band"))
        row[4].text = normalize_status(r.get("status"))
        row[5].text = f"{lat:.4f}, {lon:.4f}" if lat is not None and lon is not None else ""

    # -----------------------------
    # Reproducibility footer
    # -----------------------------
    doc.add_paragraph("")
    doc.add_heading("Reproducibility footer", level=1)

    from . import __version__ as finder_version
    from datetime import datetime as _dt
    generated_at = _dt.now().isoformat(timespec="seconds")

    doc.add_paragraph(f"Radar Finder version: {finder_version}")
    doc.add_paragraph(f"Report generated at: {generated_at}")
    doc.add_paragraph(f"Records in scope: {len(records)}")
    doc.add_paragraph(
        "Search uses a prefix index over each record's tags; every query token "
        "must match (AND). Facets apply in the order band, status, country."
    )

    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    try:
        doc.save(out_path)
    finally:
        tmp.cleanup()
    return out_path
