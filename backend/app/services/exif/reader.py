# backend/app/services/exif/reader.py
from PIL import Image
import exifread
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

EXIF_DT_KEYS = ["EXIF DateTimeOriginal", "EXIF DateTimeDigitized", "Image DateTime"]
GPS_IFD = 0x8825


def _to_deg(values, ref) -> Optional[float]:
    # expects (deg, min, sec); some cameras write a single rational or junk
    if not isinstance(values, tuple) or len(values) < 3:
        return None
    try:
        d, m, s = (float(v) for v in values[:3])
    except (TypeError, ValueError, ZeroDivisionError):
        return None
    if any(v != v for v in (d, m, s)):  # NaN from x/0 rationals
        return None
    deg = d + m / 60 + s / 3600
    if ref in ("S", "W"):
        deg *= -1
    return deg


def parse_exif(path: Union[str, Path]) -> dict:
    """
    Capture time and GPS position of a field photo.
    Returns {"taken_at": datetime|None, "gps_point": {"lon","lat"}|None, "exif_raw": {...}}
    """
    # raw tags (dates)
    with open(path, "rb") as f:
        tags = exifread.process_file(f, details=False)

    # GPS via Pillow (IFDRational values)
    with Image.open(path) as img:
        gps_info = img.getexif().get_ifd(GPS_IFD)

    lon = lat = None
    if gps_info:
        lat = _to_deg(gps_info.get(2), gps_info.get(1))
        lon = _to_deg(gps_info.get(4), gps_info.get(3))

    # naive camera-local time; the caller decides the timezone
    taken_at = None
    for k in EXIF_DT_KEYS:
        if k in tags:
            try:
                taken_at = datetime.strptime(str(tags[k]), "%Y:%m:%d %H:%M:%S")
                break
            except ValueError:
                continue

    return {
        "taken_at": taken_at,
        "gps_point": {"lon": lon, "lat": lat} if (lon is not None and lat is not None) else None,
        "exif_raw": {k: str(v) for k, v in tags.items() if k in EXIF_DT_KEYS},
    }
