"""
Radar Finder Command Line Interface (CLI)
=========================================

The interactive terminal program you run like:

    python -m radarfinder.cli --json public/radars_v2.json
    python -m radarfinder.cli --json public/radars_v2.json --url "/?q=japan"

It maps REPL commands to the session engine:
- `type` behaves like keystrokes in a search box (committed after a pause),
- `search` behaves like typing then pressing Enter on the box (committed now),
- facet commands toggle band/status and pick one country.

The CLI never modifies the catalog file. It loads it once and works on
in-memory views of it.
"""

from __future__ import annotations
import argparse, logging, os, shlex
from typing import Optional, Sequence

from .engine import RadarFinder, DEFAULT_LOCATION
from .loader import DEFAULT_DATA_PATH, load_store
from .models import BAND_OPTIONS, STATUS_OPTIONS
from .normalize import (
    coordinates, country_label, details_link, elevation_m, normalize_band,
    normalize_status, operator_label, site_label, source_label, source_link, tag_list,
)
from .query import mark

HELP = """
Radar Finder commands (grouped)
-------------------------------

1) Search
   type <text>                      (keystrokes; committed after the debounce pause)
   search <text>                    (commit immediately)
   clear                            (Escape: empty the search, drop selection)
   enter                            (Enter: jump to the first hit)

2) Facets (empty = All)
   band <S|C|X|all>                 (toggle; example: band C)
   status <name|all>                (toggle; example: status "Under Construction")
   country <code|all>               (example: country JPN)
   countries [prefix]

3) View
   show [n]                         (list hits, first token highlighted as [..])
   points [n]                       (map points + bounds)
   open <id>                        (select a radar and print details)
   stats
   url                              (current shareable location)

4) Export (current filtered list)
   export csv|json|xlsx|points "<path>"
   report "<out.docx>" [current|full]

5) Exit
   quit
"""

# commands that do not change state are kept out of the report log
_READ_ONLY = ("help", "show", "points", "countries", "stats", "url", "quit", "exit")


def _make_citation(engine: RadarFinder):
    from .report import DatasetCitation
    p = engine.store.source
    fn = os.path.basename(p) if p else None
    return DatasetCitation(file_name=fn)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="radarfinder", description="Search a weather-radar catalog offline.")
    ap.add_argument("--json", default=DEFAULT_DATA_PATH, help="Path or URL of the merged radar catalog JSON")
    ap.add_argument("--url", default=DEFAULT_LOCATION, help='Start location, e.g. "/?q=japan" (restores a shared search)')
    ap.add_argument("--debounce-ms", type=int, default=200, help="Search input debounce delay in milliseconds")
    ap.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, WARNING, ...)")
    return ap


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Entry point for the Radar Finder CLI.

    1) Load dataset (empty store on failure)
    2) Build the search index
    3) Start an interactive REPL
    """
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )

    print("Loading radar catalog...")
    store = load_store(args.json)
    engine = RadarFinder(store=store, location=args.url, debounce_s=args.debounce_ms / 1000.0)

    if store.failed:
        print(f"Failed to load catalog: {store.load_error}")
        print("Continuing with an empty catalog.")
    else:
        print(f"Loaded {len(store)} radars. Type 'help' for commands.")
    if engine.state.committed_query:
        print(f"Restored search from URL: {engine.state.committed_query!r} (hits={engine.hits})")

    while True:
        try:
            line = input("radar> ")
        except EOFError:
            break
        stripped = line.strip()
        if not stripped:
            continue
        if stripped.lower() in ("quit", "exit"):
            break
        if stripped.split()[0].lower() not in _READ_ONLY:
            engine.command_log.append(stripped)
        try:
            handle(engine, stripped)
        except (ValueError, KeyError, OSError, ImportError) as e:
            print(f"Error: {e}")


def handle(engine: RadarFinder, line: str) -> None:
    """Handle one CLI command line."""
    # a pending `type` fires once its pause has elapsed
    if engine.tick():
        print(f"(search committed: {engine.state.committed_query!r}, hits={engine.hits})")

    # allow free text without shell-style quoting
    lowered = line.lower()
    if lowered.startswith("type ") or lowered == "type":
        engine.type(line[len("type"):].strip())
        print(f"Input: {engine.state.raw_input!r} (pending)")
        return
    if lowered.startswith("search ") or lowered == "search":
        engine.type(line[len("search"):].strip())
        engine.commit()
        print(f"Search {engine.state.committed_query!r}: hits={engine.hits}")
        return

    parts = shlex.split(line)
    cmd = parts[0].lower()

    if cmd == "help":
        print(HELP)
        return

    if cmd == "stats":
        f = engine.state.facets
        print(f"Catalog size: {len(engine.store)} | Indexed tokens: {engine.idx.vocabulary_size}")
        print(f"Query: {engine.state.committed_query!r} | Search hits: {len(engine.results)} | Hits: {engine.hits} | Map points: {len(engine.map_points)}")
        print(f"Bands: {sorted(f.bands) or 'All'} | Statuses: {sorted(f.statuses) or 'All'} | Country: {f.country or 'All'}")
        return

    if cmd == "clear":
        engine.clear()
        print(f"Search cleared. Hits={engine.hits}")
        return

    if cmd == "enter":
        r = engine.enter()
        if r is None:
            print("No hits.")
        else:
            _print_details(engine, r)
        return

    if cmd == "band":
        _need(parts, 2, "band <S|C|X|all>")
        if parts[1].lower() == "all":
            engine.clear_bands()
        else:
            engine.toggle_band(parts[1])
        print(f"Bands: {sorted(engine.state.facets.bands) or 'All'}. Hits={engine.hits}")
        return

    if cmd == "status":
        _need(parts, 2, "status <name|all>")
        value = " ".join(parts[1:])
        if value.lower() == "all":
            engine.clear_statuses()
        else:
            engine.toggle_status(value)
        print(f"Statuses: {sorted(engine.state.facets.statuses) or 'All'}. Hits={engine.hits}")
        return

    if cmd == "country":
        _need(parts, 2, "country <code|all>")
        value = " ".join(parts[1:])
        engine.set_country("" if value.lower() == "all" else value)
        print(f"Country: {engine.state.facets.country or 'All'}. Hits={engine.hits}")
        return

    if cmd == "countries":
        vals = engine.countries
        if len(parts) >= 2:
            p = parts[1].lower()
            vals = [v for v in vals if v.lower().startswith(p)]
        for v in vals[:50]:
            print(v)
        if len(vals) > 50:
            print(f"... ({len(vals)} total, showing 50)")
        return

    if cmd == "show":
        n = int(parts[1]) if len(parts) >= 2 else 10
        rows = engine.filtered
        print(f"Hits: {len(rows)}")
        _print_rows(engine, rows[:n])
        return

    if cmd == "points":
        n = int(parts[1]) if len(parts) >= 2 else 10
        pts = engine.map_points
        print(f"Map points: {len(pts)} (of {engine.hits} hits)")
        for p in pts[:n]:
            print(f"[{p.id}] {p.site} | {p.country} {('/ ' + p.band) if p.band else ''} | {p.lat:.4f}, {p.lon:.4f}")
        b = engine.bounds
        if b is not None:
            print(f"Bounds: S={b.south:.4f} W={b.west:.4f} N={b.north:.4f} E={b.east:.4f}")
        return

    if cmd == "open":
        _need(parts, 2, "open <id>")
        target = engine.jump_to(parts[1])
        _print_details(engine, engine.record(parts[1]))
        if target is None:
            print("(no coordinates; not on the map)")
        return

    if cmd == "url":
        print(engine.location)
        return

    if cmd == "report":
        # report "<path.docx>" [current|full]
        from .report import generate_docx_report, ReportConfig
        _need(parts, 2, 'report "<out.docx>" [current|full]')
        path = parts[1]
        scope = parts[2].lower() if len(parts) >= 3 else "current"
        if scope not in ("current", "full"):
            raise ValueError("report scope must be: current | full")
        if scope == "full":
            recs = list(engine.store.records)
            label = "Full Catalog"
        else:
            recs = engine.filtered
            label = "Current Result Set"
        cfg = ReportConfig(
            citation=_make_citation(engine),
            command_log=engine.command_log,
            query=engine.state.committed_query if scope == "current" else "",
            facets_note=_facets_note(engine) if scope == "current" else "",
        )
        generate_docx_report(recs, path, config=cfg, scope_label=label)
        print(f"Report written to {path}")
        return

    if cmd == "export":
        # export <csv|json|xlsx|points> "<path>"
        if len(parts) < 3:
            print('Usage: export csv "out.csv" | json "out.json" | xlsx "out.xlsx" | points "points.json"')
            return
        fmt = parts[1].lower()
        out_path = parts[2]
        if engine.hits == 0:
            print("Nothing to export: current selection is empty.")
            return
        if fmt == "csv":
            engine.export_csv(out_path)
        elif fmt == "json":
            engine.export_json(out_path)
        elif fmt == "xlsx":
            engine.export_xlsx(out_path)
        elif fmt == "points":
            engine.export_points_json(out_path)
        else:
            print("Unknown export format. Use: csv, json, xlsx or points")
            return
        print(f"Exported {fmt} to {out_path}")
        return

    print("Unknown command. Type 'help'.")


def _need(parts, n: int, usage: str) -> None:
    if len(parts) < n:
        raise ValueError(f"usage: {usage}")


def _facets_note(engine: RadarFinder) -> str:
    f = engine.state.facets
    band_labels = dict(BAND_OPTIONS)
    bands = ", ".join(band_labels[b] for b in sorted(f.bands)) or "All"
    statuses = ", ".join(s for s in STATUS_OPTIONS if s in f.statuses) or "All"
    return f"Band: {bands}; Status: {statuses}; Country: {f.country or 'All'}"


def _print_rows(engine: RadarFinder, rows) -> None:
    token = engine.highlight_token
    for r in rows:
        sel = "*" if engine.state.selected_id is not None and r.get("id") == engine.state.selected_id else " "
        site = mark(site_label(r, default="(no name)"), token)
        country = country_label(r)
        source = source_label(r)
        band = normalize_band(r.get("band")) or "-"
        status = normalize_status(r.get("status")) or "-"
        print(f"{sel}[{r.get('id')}] {site} ({country}){' / ' + source if source else ''} | band={band} status={status}")


def _print_details(engine: RadarFinder, r) -> None:
    _print_rows(engine, [r])
    tech = [
        f"Band {r.get('band')}" if r.get("band") else None,
        f"Pol {r.get('polarization')}" if r.get("polarization") else None,
        f"Tx {r.get('txType')}" if r.get("txType") else None,
        f"Rx {r.get('rxType')}" if r.get("rxType") else None,
        f"Status {r.get('status')}" if r.get("status") else None,
    ]
    lat, lon = coordinates(r)
    elev = elevation_m(r)
    operator = operator_label(r)
    info = [
        f"Operator {operator}" if operator else None,
        f"Install {r.get('installDate')}" if r.get("installDate") else None,
        f"Elev {elev:g} m" if elev is not None else None,
        f"LatLon {lat:.4f}, {lon:.4f}" if lat is not None and lon is not None else None,
    ]
    for parts in (tech, info):
        shown = [p for p in parts if p]
        if shown:
            print("    " + " / ".join(shown))
    tags = tag_list(r)
    if tags:
        print("    Tags: " + ", ".join(tags[:5]) + (" ..." if len(tags) > 5 else ""))
    for label, link in (("details", details_link(r)), ("source", source_link(r))):
        if link:
            print(f"    {label}: {link}")


if __name__ == "__main__":
    main()
