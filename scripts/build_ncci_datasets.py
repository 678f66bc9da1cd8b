#!/usr/bin/env python3
"""Download CMS NCCI edit files and write the PTP/MUE reference datasets.

Uses the Medicaid NCCI practitioner files, which carry the same code pairs
and unit limits as Medicare NCCI without AMA license requirements.

Data sources:
- PTP: https://www.cms.gov/medicare/coding-billing/ncci-medicaid/medicaid-ncci-edit-files
- MUE: Same source

Output:
- data/ncci-ptp.json: {"edits": [{col1, col2, col1Desc, col2Desc, modifier, context, effectiveDate}]}
- data/ncci-mue.json: {"edits": [{cpt, mueValue, adjudicationType, rationale}]}

Existing files are left untouched when a download fails.
"""
from __future__ import annotations

import argparse
import io
import json
import sys
import zipfile
from datetime import date, datetime
from pathlib import Path
from typing import Any

import httpx

CMS_BASE = "https://www.cms.gov/files/zip"

# Update when CMS publishes a new quarter
NCCI_FILES = {
    "ptp": f"{CMS_BASE}/medicaid-ncci-q1-2026-ptp-edits-practitioner-services.zip",
    "mue": f"{CMS_BASE}/medicaid-ncci-q1-2026-mue-edits-practitioner-services.zip",
}

# Code ranges kept by default: drug administration, infusion access,
# E/M, radiation oncology and J/Q drug codes
DEFAULT_PREFIXES = ("963", "964", "365", "360", "992", "774", "J", "Q")

MODIFIER_INDICATORS = {"0": 0, "1": 1, "9": 9}


def download_file(url: str, timeout: float = 180.0) -> bytes:
    """Download a file, returning empty bytes on failure."""
    print(f"  Downloading: {url}")
    try:
        with httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": "priorauth-dataset-builder"},
        ) as client:
            response = client.get(url)
            response.raise_for_status()
    except httpx.HTTPError as e:
        print(f"  Error downloading {url}: {e}")
        return b""
    print(f"  Downloaded {len(response.content):,} bytes")
    return response.content


def _text_members(zip_data: bytes) -> list[str]:
    with zipfile.ZipFile(io.BytesIO(zip_data)) as zf:
        return [
            zf.read(name).decode("utf-8", errors="ignore")
            for name in zf.namelist()
            if name.lower().endswith(".txt")
        ]


def _iso_date(value: str) -> str | None:
    """CMS files use YYYYMMDD; '*' and blanks mean no date."""
    value = value.strip()
    if not value or value == "*":
        return None
    try:
        return datetime.strptime(value, "%Y%m%d").date().isoformat()
    except ValueError:
        return None


def parse_ptp_text(content: str, today: date | None = None) -> list[dict[str, Any]]:
    """Parse one tab-delimited PTP file into dataset records.

    Lines 0-2 are title, notice and headers. Columns: Col1, Col2, EffDt,
    DelDt, ModifierIndicator, Rationale. Deleted edits are skipped.
    """
    today_iso = (today or date.today()).isoformat()
    edits = []
    for line in content.strip().split("\n")[3:]:
        if "\t" not in line:
            continue
        parts = [part.strip() for part in line.split("\t")]
        if len(parts) < 5 or not parts[0] or not parts[1]:
            continue

        deletion = _iso_date(parts[3])
        if deletion and deletion < today_iso:
            continue

        edits.append({
            "col1": parts[0].upper(),
            "col2": parts[1].upper(),
            "col1Desc": "",
            "col2Desc": "",
            "modifier": MODIFIER_INDICATORS.get(parts[4], 9),
            "context": parts[5] if len(parts) > 5 else "",
            "effectiveDate": _iso_date(parts[2]),
        })
    return edits


def parse_mue_text(content: str) -> list[dict[str, Any]]:
    """Parse one tab-delimited MUE file into dataset records.

    Data starts after the line containing "HCPCS/CPT Code". Columns: code,
    MUE value, rationale, and optionally the adjudication indicator.
    """
    lines = content.strip().split("\n")
    start = next(
        (i + 1 for i, line in enumerate(lines) if "HCPCS/CPT Code" in line), 0
    )
    edits = []
    for line in lines[start:]:
        if "\t" not in line:
            continue
        parts = [part.strip() for part in line.split("\t")]
        if len(parts) < 2 or not parts[0]:
            continue
        try:
            value = int(parts[1])
        except ValueError:
            continue
        edits.append({
            "cpt": parts[0].upper(),
            "mueValue": value,
            "adjudicationType": parts[3] if len(parts) > 3 else "",
            "rationale": parts[2] if len(parts) > 2 else "",
        })
    return edits


def keep_code(code: str, prefixes: tuple[str, ...]) -> bool:
    return not prefixes or code.startswith(prefixes)


def filter_ptp(edits: list[dict[str, Any]], prefixes: tuple[str, ...]) -> list[dict[str, Any]]:
    """Keep pairs where both codes are in range; first occurrence of a pair wins."""
    seen: set[frozenset[str]] = set()
    kept = []
    for edit in edits:
        if not (keep_code(edit["col1"], prefixes) and keep_code(edit["col2"], prefixes)):
            continue
        pair = frozenset((edit["col1"], edit["col2"]))
        if pair in seen:
            continue
        seen.add(pair)
        kept.append(edit)
    return kept


def filter_mue(edits: list[dict[str, Any]], prefixes: tuple[str, ...]) -> list[dict[str, Any]]:
    return [edit for edit in edits if keep_code(edit["cpt"], prefixes)]


def write_dataset(path: Path, edits: list[dict[str, Any]], source: str) -> None:
    document = {
        "version": date.today().isoformat(),
        "source": source,
        "edits": edits,
    }
    with open(path, "w") as f:
        json.dump(document, f, separators=(",", ":"))
    print(f"  Written {len(edits):,} records to: {path} ({path.stat().st_size:,} bytes)")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path(__file__).parent.parent / "data",
    )
    parser.add_argument(
        "--all-codes",
        action="store_true",
        help="Keep every code instead of the default oncology/infusion ranges",
    )
    args = parser.parse_args(argv)
    prefixes = () if args.all_codes else DEFAULT_PREFIXES
    args.output_dir.mkdir(exist_ok=True)

    print("=" * 60)
    print("NCCI Dataset Builder")
    print("=" * 60)

    status = 0

    print("\nStep 1: MUE (Medically Unlikely Edits)...")
    mue_data = download_file(NCCI_FILES["mue"])
    mue_edits = [edit for text in _text_members(mue_data) for edit in parse_mue_text(text)] if mue_data else []
    if mue_edits:
        write_dataset(
            args.output_dir / "ncci-mue.json",
            filter_mue(mue_edits, prefixes),
            NCCI_FILES["mue"],
        )
    else:
        print("  MUE download failed; keeping the existing dataset")
        status = 1

    print("\nStep 2: PTP (Procedure-to-Procedure Edits)...")
    print("  Note: This is a large file, please wait...")
    ptp_data = download_file(NCCI_FILES["ptp"])
    ptp_edits = [edit for text in _text_members(ptp_data) for edit in parse_ptp_text(text)] if ptp_data else []
    if ptp_edits:
        kept = filter_ptp(ptp_edits, prefixes)
        write_dataset(args.output_dir / "ncci-ptp.json", kept, NCCI_FILES["ptp"])
        mod_0 = sum(1 for edit in kept if edit["modifier"] == 0)
        mod_1 = sum(1 for edit in kept if edit["modifier"] == 1)
        print(f"    - Modifier 0 (never bill together): {mod_0:,}")
        print(f"    - Modifier 1 (modifier may allow): {mod_1:,}")
    else:
        print("  PTP download failed; keeping the existing dataset")
        status = 1

    return status


if __name__ == "__main__":
    sys.exit(main())
