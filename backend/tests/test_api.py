import os

from PIL import Image


def _files(*items):
    return [("files", (name, data, "image/jpeg")) for name, data in items]


def test_health(client):
    assert client.get("/health").json() == {"ok": True}


def test_upload_partial_success(client, make_work_order, jpeg_bytes, upload_dir):
    wo = make_work_order()
    r = client.post(
        f"/work-orders/{wo.id}/photos",
        files=_files(("poste.jpg", jpeg_bytes()), ("broken.jpg", b"garbage")),
        data={"photoType": "before", "personnelName": "Juan Pérez", "description": "Antes del cambio"},
    )
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["uploaded"] == 1
    assert body["total"] == 2
    assert body["errors"][0]["fileName"] == "broken.jpg"

    photo = body["photos"][0]
    assert photo["hasWatermark"] is True
    assert photo["photoType"] == "before"
    assert photo["fileName"] == "poste.jpg"
    assert photo["takenBy"] == "Juan Pérez"
    assert photo["watermarkText"].startswith(f"GC Electric - Job: {wo.order_number}\nJuan Pérez - ")
    assert photo["filePath"].endswith("_watermarked.jpg")
    assert photo["originalFilePath"].endswith("_original.jpg")
    assert os.path.exists(photo["filePath"])
    with Image.open(photo["filePath"]) as img:
        assert img.size == (640, 480)

    # only archive + watermarked copies stay behind
    names = sorted(os.listdir(upload_dir))
    assert len(names) == 2
    assert any(n.endswith("_original.jpg") for n in names)

    listed = client.get(f"/work-orders/{wo.id}/photos").json()
    assert [p["id"] for p in listed] == [photo["id"]]


def test_upload_gps_from_form(client, make_work_order, jpeg_bytes):
    wo = make_work_order()
    r = client.post(
        f"/work-orders/{wo.id}/photos",
        files=_files(("a.jpg", jpeg_bytes())),
        data={"gpsLatitude": "19.4326", "gpsLongitude": "-99.1332"},
    )
    photo = r.json()["photos"][0]
    assert photo["gpsLatitude"] == 19.4326
    assert photo["gpsLongitude"] == -99.1332
    assert photo["photoType"] == "general"
    assert photo["takenBy"] == "Usuario"


def test_upload_all_failed(client, make_work_order):
    wo = make_work_order()
    r = client.post(f"/work-orders/{wo.id}/photos", files=_files(("x.jpg", b"nope"), ("y.jpg", b"nada")))
    assert r.status_code == 422
    assert r.json()["uploaded"] == 0
    assert len(r.json()["errors"]) == 2


def test_upload_too_many_files(client, make_work_order, jpeg_bytes):
    wo = make_work_order()
    data = jpeg_bytes((32, 32))
    r = client.post(f"/work-orders/{wo.id}/photos", files=_files(*[(f"{i}.jpg", data) for i in range(11)]))
    assert r.status_code == 400


def test_upload_invalid_photo_type(client, make_work_order, jpeg_bytes):
    wo = make_work_order()
    r = client.post(f"/work-orders/{wo.id}/photos", files=_files(("a.jpg", jpeg_bytes())), data={"photoType": "selfie"})
    assert r.status_code == 400


def test_upload_unknown_work_order(client, jpeg_bytes):
    r = client.post("/work-orders/999/photos", files=_files(("a.jpg", jpeg_bytes())))
    assert r.status_code == 404
    assert client.get("/work-orders/999/photos").status_code == 404


def test_optimize_route_identity(client, make_work_order):
    w1, w2, w3 = (make_work_order() for _ in range(3))
    payload = {
        "crewId": 5,
        "workOrderIds": [w3.id, w1.id, w2.id],
        "routeDate": "2025-02-10",
        "startLocation": "Base GC Electric",
    }
    r = client.post("/routes/optimize", json=payload)
    assert r.status_code == 201, r.text
    route = r.json()
    assert route["workOrderSequence"] == [w3.id, w1.id, w2.id]
    assert route["status"] == "planned"
    assert route["endLocation"] == "Base GC Electric"
    assert route["routeDate"] == "2025-02-10"
    assert route["totalDistance"] is None

    assert client.get(f"/routes/{route['id']}").json()["workOrderSequence"] == [w3.id, w1.id, w2.id]
    assert [x["id"] for x in client.get("/routes", params={"crew_id": 5}).json()] == [route["id"]]
    assert client.get("/routes", params={"crew_id": 6}).json() == []


def test_optimize_route_nearest_neighbor(client, make_work_order):
    from app.api.deps import get_route_optimizer
    from app.main import app
    from app.services.routing.sequencer import NearestNeighborOptimizer

    app.dependency_overrides[get_route_optimizer] = NearestNeighborOptimizer
    a = make_work_order(latitude=19.0, longitude=-99.0)
    far = make_work_order(latitude=20.0, longitude=-99.0)
    near = make_work_order(latitude=19.1, longitude=-99.0)
    r = client.post("/routes/optimize", json={
        "crewId": 2,
        "workOrderIds": [a.id, far.id, near.id],
        "routeDate": "2025-02-11",
        "startLocation": "Base",
    })
    assert r.status_code == 201, r.text
    route = r.json()
    assert route["workOrderSequence"] == [a.id, near.id, far.id]
    assert route["totalDistance"] > 0
    assert route["optimizationScore"] > 0


def test_optimize_route_empty(client):
    r = client.post("/routes/optimize", json={
        "crewId": 5, "workOrderIds": [], "routeDate": "2025-02-10", "startLocation": "Base",
    })
    assert r.status_code == 400


def test_optimize_route_duplicate_ids(client, make_work_order):
    wo = make_work_order()
    r = client.post("/routes/optimize", json={
        "crewId": 5, "workOrderIds": [wo.id, wo.id], "routeDate": "2025-02-10", "startLocation": "Base",
    })
    assert r.status_code == 400


def test_optimize_route_unknown_or_not_pending(client, make_work_order):
    done = make_work_order(status="completed")
    base = {"crewId": 5, "routeDate": "2025-02-10", "startLocation": "Base"}
    assert client.post("/routes/optimize", json={**base, "workOrderIds": [12345]}).status_code == 404
    assert client.post("/routes/optimize", json={**base, "workOrderIds": [done.id]}).status_code == 400


def test_route_status_lifecycle(client, make_work_order):
    wo = make_work_order()
    route = client.post("/routes/optimize", json={
        "crewId": 1, "workOrderIds": [wo.id], "routeDate": "2025-02-10", "startLocation": "Base",
    }).json()

    r = client.patch(f"/routes/{route['id']}/status", json={"status": "active"})
    assert r.status_code == 200
    assert r.json()["status"] == "active"

    assert client.patch(f"/routes/{route['id']}/status", json={"status": "cancelled"}).status_code == 409
    assert client.patch(f"/routes/{route['id']}/status", json={"status": "completed"}).json()["status"] == "completed"
    assert client.patch("/routes/999/status", json={"status": "active"}).status_code == 404


def _gps_jpeg_bytes(gps):
    import io
    exif = Image.Exif()
    exif[0x8825] = gps
    buf = io.BytesIO()
    Image.new("RGB", (64, 64)).save(buf, format="JPEG", exif=exif)
    return buf.getvalue()


def test_upload_malformed_exif_gps_does_not_fail_batch(client, make_work_order, jpeg_bytes):
    wo = make_work_order()
    r = client.post(
        f"/work-orders/{wo.id}/photos",
        files=_files(("badgps.jpg", _gps_jpeg_bytes({1: "N", 2: (1.0,)})), ("ok.jpg", jpeg_bytes())),
    )
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["uploaded"] == 2
    assert body["photos"][0]["gpsLatitude"] is None


def test_upload_gps_from_exif(client, make_work_order):
    wo = make_work_order()
    data = _gps_jpeg_bytes({1: "N", 2: (19.0, 30.0, 0.0), 3: "W", 4: (99.0, 15.0, 0.0)})
    photo = client.post(f"/work-orders/{wo.id}/photos", files=_files(("gps.jpg", data))).json()["photos"][0]
    assert photo["gpsLatitude"] == 19.5
    assert photo["gpsLongitude"] == -99.25


def test_upload_db_error_skips_only_that_file(client, make_work_order, jpeg_bytes, monkeypatch):
    from sqlalchemy.exc import OperationalError
    from app.services.storage import Storage

    real_create = Storage.create_work_order_photo
    calls = {"n": 0}

    def flaky_create(self, record):
        calls["n"] += 1
        if calls["n"] == 1:
            raise OperationalError("INSERT INTO work_order_photos", {}, Exception("database is locked"))
        return real_create(self, record)

    monkeypatch.setattr(Storage, "create_work_order_photo", flaky_create)
    wo = make_work_order()
    r = client.post(f"/work-orders/{wo.id}/photos", files=_files(("a.jpg", jpeg_bytes()), ("b.jpg", jpeg_bytes())))
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["uploaded"] == 1
    assert body["errors"] == [{"fileName": "a.jpg", "error": "could not save photo record"}]
    assert [p["fileName"] for p in client.get(f"/work-orders/{wo.id}/photos").json()] == ["b.jpg"]


def test_upload_oversized_image_reported(client, make_work_order, jpeg_bytes, monkeypatch):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
    wo = make_work_order()
    r = client.post(f"/work-orders/{wo.id}/photos", files=_files(("big.jpg", jpeg_bytes((100, 100)))))
    assert r.status_code == 422
    assert r.json()["errors"][0]["fileName"] == "big.jpg"
