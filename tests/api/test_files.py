"""Test file endpoints"""

from pathlib import Path

from fieldservice.models.file import File

MANUAL = (
    "Shut off the pump before opening the housing. "
    "Check the pressure gauge reading after restart. "
    "Replace the valve seal if the reading drops. "
) * 3


def upload(client, headers, filename="manual.txt", content=MANUAL.encode(), mime_type="text/plain"):
    return client.post(
        "/api/files",
        files={"file": (filename, content, mime_type)},
        headers=headers
    )


def test_upload_file(client, auth_headers, db):
    response = upload(client, auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["warnings"] == []
    assert data["file"]["filename"] == "manual.txt"
    assert data["file"]["is_processed"] is False
    assert data["file"]["uploaded_by"] == "tech-1"

    record = db.get(File, data["file"]["id"])
    assert record.file_size == len(MANUAL.encode())
    assert Path(record.file_path).read_bytes() == MANUAL.encode()


def test_upload_rejects_dangerous_file(client, auth_headers):
    response = upload(client, auth_headers, filename="setup.exe", mime_type="application/pdf")

    assert response.status_code == 400
    assert "security" in response.json()["detail"]


def test_upload_rejects_unsupported_type(client, auth_headers):
    response = upload(client, auth_headers, filename="clip.mp4", mime_type="video/mp4")
    assert response.status_code == 400


def test_list_files(client, auth_headers):
    first = upload(client, auth_headers, filename="a.txt").json()["file"]
    upload(client, auth_headers, filename="b.txt")
    client.post(f"/api/files/{first['id']}/process", json={}, headers=auth_headers)

    everything = client.get("/api/files", headers=auth_headers).json()
    processed = client.get("/api/files", params={"processed": True}, headers=auth_headers).json()
    pending = client.get("/api/files", params={"processed": False}, headers=auth_headers).json()

    assert everything["total"] == 2
    assert [f["id"] for f in processed["items"]] == [first["id"]]
    assert pending["total"] == 1


def test_process_and_status(client, auth_headers):
    file_id = upload(client, auth_headers).json()["file"]["id"]

    response = client.post(
        f"/api/files/{file_id}/process",
        json={"chunk_size": 60, "chunk_overlap": 0},
        headers=auth_headers
    )

    assert response.status_code == 200
    chunks_count = response.json()["chunks_count"]
    assert chunks_count > 5

    status = client.get(f"/api/files/{file_id}/process", headers=auth_headers).json()
    assert status["file"]["is_processed"] is True
    assert status["total_chunks"] == chunks_count
    assert len(status["sample_chunks"]) == 5


def test_process_twice_needs_reprocess(client, auth_headers):
    file_id = upload(client, auth_headers).json()["file"]["id"]
    client.post(f"/api/files/{file_id}/process", json={"chunk_size": 100, "chunk_overlap": 0}, headers=auth_headers)

    again = client.post(f"/api/files/{file_id}/process", json={}, headers=auth_headers)
    assert again.status_code == 400

    reprocessed = client.post(
        f"/api/files/{file_id}/process",
        json={"reprocess": True, "chunk_size": 1000, "chunk_overlap": 0},
        headers=auth_headers
    )
    assert reprocessed.status_code == 200
    assert reprocessed.json()["chunks_count"] == 1


def test_process_image_rejected(client, auth_headers):
    file_id = upload(client, auth_headers, filename="site.png", content=b"\x89PNG", mime_type="image/png").json()["file"]["id"]

    response = client.post(f"/api/files/{file_id}/process", headers=auth_headers)

    assert response.status_code == 400


def test_process_unknown_file(client, auth_headers):
    assert client.post("/api/files/missing/process", headers=auth_headers).status_code == 404
    assert client.get("/api/files/missing/process", headers=auth_headers).status_code == 404


def test_delete_file(client, auth_headers, other_headers, vector_store, db):
    file_id = upload(client, auth_headers).json()["file"]["id"]
    client.post(f"/api/files/{file_id}/process", json={"chunk_size": 100, "chunk_overlap": 0}, headers=auth_headers)
    stored_path = Path(db.get(File, file_id).file_path)

    forbidden = client.delete(f"/api/files/{file_id}", headers=other_headers)
    assert forbidden.status_code == 403

    response = client.delete(f"/api/files/{file_id}", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["chunks_deleted"] > 0
    assert vector_store.count(file_id) == 0
    assert not stored_path.exists()
    db.expire_all()
    assert db.get(File, file_id) is None

    assert client.delete(f"/api/files/{file_id}", headers=auth_headers).status_code == 404


def test_admin_can_delete_any_file(client, auth_headers, admin_headers):
    file_id = upload(client, auth_headers).json()["file"]["id"]
    assert client.delete(f"/api/files/{file_id}", headers=admin_headers).status_code == 200


def test_batch_processing_requires_manager(client, auth_headers):
    response = client.post("/api/files/process-batch", json={}, headers=auth_headers)
    assert response.status_code == 403


def test_batch_processing(client, auth_headers, admin_headers, embeddings):
    good = upload(client, auth_headers, filename="good.txt", content=b"Check the pressure gauge.").json()["file"]["id"]
    bad = upload(client, auth_headers, filename="bad.txt", content=b"A faulty page.").json()["file"]["id"]
    embeddings.fail_on.add("faulty")

    response = client.post("/api/files/process-batch", json={}, headers=admin_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert data["processed"] == 1
    assert data["failed"] == 1
    assert data["message"] == "Batch processing completed. 1 files processed, 1 failed."
    results = {r["file_id"]: r for r in data["results"]}
    assert results[good]["success"] is True
    assert results[bad]["error_type"] == "upstream"

    status = client.get("/api/files/process-batch", headers=auth_headers).json()
    assert status["stats"]["processed_files"] == 1
    assert status["total_unprocessed"] == 1
    assert status["unprocessed_files_list"][0]["id"] == bad


def test_batch_status_lists_only_processable_files(client, auth_headers):
    upload(client, auth_headers, filename="site.png", content=b"\x89PNG", mime_type="image/png")
    upload(client, auth_headers, filename="notes.txt")

    status = client.get("/api/files/process-batch", headers=auth_headers).json()

    assert status["unprocessed_files"] == 2
    assert status["total_unprocessed"] == 1
    assert status["unprocessed_files_list"][0]["filename"] == "notes.txt"
