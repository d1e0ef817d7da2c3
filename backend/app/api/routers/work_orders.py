# backend/app/api/routers/work_orders.py
from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile
from pathlib import Path
from sqlalchemy.exc import SQLAlchemyError
from uuid import uuid4
import logging
import shutil

from app.api.deps import get_storage, get_upload_dir
from app.config import MAX_UPLOAD_FILES
from app.errors import PhotoProcessingError
from app.models.work_order_photo import WorkOrderPhoto
from app.schemas.commons import PHOTO_CATEGORIES
from app.schemas.photo import PhotoOut, PhotoUploadError, PhotoUploadOut
from app.services.exif.reader import parse_exif
from app.services.storage import Storage
from app.services.watermark.processor import process_photo

logger = logging.getLogger(__name__)

router = APIRouter()


def _photo_out(p: WorkOrderPhoto) -> PhotoOut:
    return PhotoOut(
        id=p.id,
        work_order_id=p.work_order_id,
        file_path=p.file_path,
        original_file_path=p.original_file_path,
        file_name=p.file_name,
        photo_type=p.photo_type,
        description=p.description or "",
        gps_latitude=p.gps_latitude,
        gps_longitude=p.gps_longitude,
        has_watermark=bool(p.has_watermark),
        watermark_text=p.watermark_text,
        taken_by=p.taken_by,
        created_at=p.created_at,
    )


def _exif_gps(path: Path) -> tuple[float | None, float | None]:
    try:
        gps = parse_exif(path)["gps_point"]
    except (OSError, ValueError, TypeError, KeyError, ZeroDivisionError) as e:
        # GPS is optional metadata; a broken EXIF block never fails the photo
        logger.warning(f"EXIF read failed for {path.name}: {e}")
        return None, None
    if not gps:
        return None, None
    return gps["lat"], gps["lon"]


@router.post("/{work_order_id}/photos", status_code=201)
def upload_photos(
    work_order_id: int,
    response: Response,
    files: list[UploadFile] = File(...),
    photo_type: str = Form("general", alias="photoType"),
    description: str = Form(""),
    personnel_name: str = Form("", alias="personnelName"),
    gps_latitude: float | None = Form(None, alias="gpsLatitude"),
    gps_longitude: float | None = Form(None, alias="gpsLongitude"),
    storage: Storage = Depends(get_storage),
    upload_dir: Path = Depends(get_upload_dir),
) -> PhotoUploadOut:
    """
    Watermark and store each uploaded photo. A failing file does not stop
    the batch; the response lists which files failed.
    """
    wo = storage.get_work_order(work_order_id)
    if not wo:
        raise HTTPException(status_code=404, detail="work order not found")
    if not files:
        raise HTTPException(status_code=400, detail="no files uploaded")
    if len(files) > MAX_UPLOAD_FILES:
        raise HTTPException(status_code=400, detail=f"at most {MAX_UPLOAD_FILES} files per upload")
    if photo_type not in PHOTO_CATEGORIES:
        raise HTTPException(status_code=400, detail=f"invalid photoType: {photo_type}")

    photos: list[PhotoOut] = []
    errors: list[PhotoUploadError] = []

    for upload in files:
        file_name = upload.filename or "photo"
        # unique temp name per upload, so concurrent requests never share targets
        tmp_path = upload_dir / f"{uuid4().hex}{Path(file_name).suffix.lower()}"
        try:
            with tmp_path.open("wb") as out:
                shutil.copyfileobj(upload.file, out)

            asset = process_photo(tmp_path, wo.order_number, personnel_name, photo_type, output_dir=upload_dir)

            lat, lon = gps_latitude, gps_longitude
            if lat is None or lon is None:
                lat, lon = _exif_gps(tmp_path)

            photo = storage.create_work_order_photo({
                "work_order_id": wo.id,
                "file_path": str(asset.watermarked_path),
                "original_file_path": str(asset.original_path),
                "file_name": file_name,
                "photo_type": photo_type,
                "description": description,
                "gps_latitude": lat,
                "gps_longitude": lon,
                "has_watermark": True,
                "watermark_text": asset.label.text,
                "taken_by": asset.label.actor_name,
            })
            photos.append(_photo_out(photo))
        except PhotoProcessingError as e:
            logger.warning(f"Photo {file_name} for work order {wo.order_number} failed: {e.message}")
            errors.append(PhotoUploadError(file_name=file_name, error=e.message))
        except SQLAlchemyError as e:
            storage.rollback()
            logger.warning(f"Could not save photo record for {file_name}: {e}")
            errors.append(PhotoUploadError(file_name=file_name, error="could not save photo record"))
        except OSError as e:
            logger.warning(f"Could not store upload {file_name}: {e}")
            errors.append(PhotoUploadError(file_name=file_name, error="could not store upload"))
        finally:
            # the byte-identical *_original copy is kept instead
            tmp_path.unlink(missing_ok=True)

    logger.info(f"Work order {wo.order_number}: {len(photos)}/{len(files)} photos processed")
    if not photos:
        response.status_code = 422
    return PhotoUploadOut(uploaded=len(photos), total=len(files), photos=photos, errors=errors)


@router.get("/{work_order_id}/photos")
def list_photos(work_order_id: int, storage: Storage = Depends(get_storage)) -> list[PhotoOut]:
    if not storage.get_work_order(work_order_id):
        raise HTTPException(status_code=404, detail="work order not found")
    return [_photo_out(p) for p in storage.list_work_order_photos(work_order_id)]
