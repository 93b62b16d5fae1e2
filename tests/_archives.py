"""In-memory report archives shared by the test modules."""

from __future__ import annotations

import io
import zipfile
from typing import Mapping

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image"

CUSTOM_FORECAST_CSV = "ds,yhat,yhat_lower,yhat_upper\n2027-01-01,120,100,140\n2027-02-01,125,101,150\n"


def build_archive(entries: Mapping[str, bytes | str]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, content in entries.items():
            if isinstance(content, str):
                content = content.encode("utf-8")
            archive.writestr(name, content)
    return buffer.getvalue()


def full_report_entries(product: str = "AMOXIL") -> dict[str, bytes | str]:
    """Entries of a complete report for one product."""
    return {
        f"forecast_chart_{product}.png": PNG_BYTES,
        f"product_analysis_{product}/sales_by_month.png": PNG_BYTES,
        f"forecast_custom_date_{product}.csv": CUSTOM_FORECAST_CSV,
        "detailed_summary_report.txt": f"**Historical** sales for {product}",
        "forecast_summary_report.txt": f"**Forecast** for {product}",
        "full_forecast_data.csv": "ds,yhat\n2026-01-01,10\n",
        "historical_raw_data.csv": "date,sales\n2024-01-01,7\n",
        "notes/readme.md": "not part of the bundle",
    }
