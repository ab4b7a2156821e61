"""Water meter readings: usage per house, paste import and reading payloads"""

import re
from typing import Any, Dict, Iterable, List, Optional

from rentdesk.domain.exceptions import ValidationError
from rentdesk.domain.models import House, PasteEntry, PasteResult, WaterRow
from rentdesk.domain.money import num, parse_number_loose

READING_DROP_WARNING = "KM turun"
UNMAPPED_METER = "-"

_PASTE_SPLIT = re.compile(r"\s*[,\t]\s*|\s+")


def reading_warning(value: Optional[float], prev_reading: Optional[float]) -> Optional[str]:
    """Flag a current reading that is lower than the previous one"""
    if value is not None and prev_reading is not None and value < prev_reading:
        return READING_DROP_WARNING
    return None


def index_readings(readings: Iterable[Dict[str, Any]]) -> Dict[str, Dict[str, float]]:
    """period -> house_id -> reading_m3"""
    result: Dict[str, Dict[str, float]] = {}
    for r in readings:
        result.setdefault(r["period"], {})[r["house_id"]] = num(r.get("reading_m3"))
    return result


def build_water_rows(
    houses: Iterable[House],
    readings: Dict[str, Dict[str, float]],
    shares: Dict[str, float],
    meter_by_house: Dict[str, str],
    period: str,
    prev_period: str,
) -> List[WaterRow]:
    rows = []
    for house in houses:
        prev_reading = readings.get(prev_period, {}).get(house.id)
        curr_reading = readings.get(period, {}).get(house.id)
        usage = 0.0
        if prev_reading is not None and curr_reading is not None:
            usage = max(curr_reading - prev_reading, 0.0)
        rows.append(
            WaterRow(
                house_id=house.id,
                code=house.code,
                owner=house.owner,
                prev_reading=prev_reading,
                curr_reading=curr_reading,
                usage=usage,
                share=shares.get(house.id, 0.0),
                meter=meter_by_house.get(house.id) or UNMAPPED_METER,
                warning=reading_warning(curr_reading, prev_reading),
            )
        )
    return rows


def totals_by_meter(rows: Iterable[WaterRow], attr: str) -> Dict[str, float]:
    result: Dict[str, float] = {}
    for row in rows:
        result[row.meter] = result.get(row.meter, 0.0) + getattr(row, attr)
    return result


def parse_paste(text: str, rows: List[WaterRow]) -> PasteResult:
    """
    Match pasted ``CODE value`` lines to houses.

    Separators may be a comma, a tab or whitespace. Codes are matched
    case-insensitively; lines without a value are skipped.
    """
    if not text or not text.strip():
        raise ValidationError("Tidak ada data tempel.")

    by_code = {row.code: row for row in rows}
    matched: Dict[str, PasteEntry] = {}
    unmatched: List[str] = []
    for line in text.strip().splitlines():
        parts = _PASTE_SPLIT.split(line.strip())
        if len(parts) < 2 or not parts[0]:
            continue
        code = parts[0].strip().upper()
        raw_value = parts[1].strip()
        row = by_code.get(code)
        if row is None:
            unmatched.append(code)
            continue
        if not raw_value:
            continue
        matched[row.house_id] = PasteEntry(
            house_id=row.house_id,
            code=row.code,
            value=raw_value,
            warning=reading_warning(parse_number_loose(raw_value), row.prev_reading),
        )
    return PasteResult(entries=list(matched.values()), unmatched=unmatched)


def reading_pairs(entries: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Payload for bulk_upsert_water_readings.

    Entries whose value does not parse are skipped. A pair without its own
    date carries null so the procedure applies p_default_date.
    """
    pairs = []
    for entry in entries:
        value = parse_number_loose(entry.get("value"))
        if value is None:
            continue
        pairs.append(
            {
                "house_id": entry["house_id"],
                "reading_m3": value,
                "reading_date": entry.get("reading_date") or None,
            }
        )
    if not pairs:
        raise ValidationError("Isi minimal satu KM terlebih dahulu.")
    return pairs
