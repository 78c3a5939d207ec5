"""
EvidenceService: upload limits, blob cleanup and edit permissions.
"""

from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException
from fastapi.exceptions import RequestValidationError

from app.config.settings import settings
from app.modules.evidence.schemas import EvidenceUpdate
from app.modules.evidence.service import EvidenceService

from factories import failed, inspection_row, not_found, ok


def _evidence(**overrides):
    row = {
        "id": "ev-1",
        "inspection_id": "insp-1",
        "uploaded_by": "inspector-1",
        "filename": "abc.jpg",
        "mime_type": "image/jpeg",
        "file_size": 2048,
        "storage_path": "evidence/insp-1/inspector-1/abc.jpg",
    }
    row.update(overrides)
    return row


class TestUpload:
    def setup_method(self):
        self.storage = MagicMock()
        self.storage.upload_file.side_effect = lambda content, key, content_type: key
        self.storage.public_url.return_value = "https://cdn.example.com/blob"
        self.storage.delete_file.return_value = True

    def _upload(self, service, **overrides):
        fields = {"inspection_id": "insp-1", "filename": "Blade.JPG", "mime_type": "image/jpeg", "file_size": 2048}
        fields.update(overrides)
        return service.validate_upload(**fields)

    def test_stores_blob_then_row(self, mock_db, inspector):
        mock_db.get_inspection.return_value = ok(inspection_row())
        mock_db.get_total_evidence_size.return_value = ok(0)
        mock_db.create_evidence.return_value = ok(_evidence())
        service = EvidenceService(mock_db, self.storage)

        service.upload(self._upload(service, question_id="q1"), b"x" * 2048, inspector)

        key = self.storage.upload_file.call_args.args[1]
        assert key.startswith("evidence/insp-1/inspector-1/")
        assert key.endswith(".jpg")
        row = mock_db.create_evidence.call_args.args[0]
        assert row["storage_path"] == key
        assert row["original_name"] == "Blade.JPG"
        assert row["metadata"]["linked_to_question"] is True
        assert row["verified"] is False

    def test_unsupported_type_is_400(self, mock_db):
        service = EvidenceService(mock_db, self.storage)
        with pytest.raises(RequestValidationError) as exc:
            self._upload(service, mime_type="application/zip")
        assert exc.value.errors()[0]["loc"] == ("mime_type",)

    def test_oversized_file_is_400(self, mock_db):
        service = EvidenceService(mock_db, self.storage)
        with pytest.raises(RequestValidationError):
            self._upload(service, file_size=settings.max_evidence_file_size + 1)

    def test_inspection_total_is_capped(self, mock_db, inspector):
        mock_db.get_inspection.return_value = ok(inspection_row())
        mock_db.get_total_evidence_size.return_value = ok(settings.max_inspection_evidence_size - 100)
        service = EvidenceService(mock_db, self.storage)

        with pytest.raises(RequestValidationError) as exc:
            service.upload(self._upload(service), b"x" * 2048, inspector)

        assert "cannot exceed 1GB" in exc.value.errors()[0]["msg"]
        self.storage.upload_file.assert_not_called()

    def test_blob_removed_when_row_fails(self, mock_db, inspector):
        mock_db.get_inspection.return_value = ok(inspection_row())
        mock_db.get_total_evidence_size.return_value = ok(0)
        mock_db.create_evidence.return_value = failed()
        service = EvidenceService(mock_db, self.storage)

        with pytest.raises(HTTPException) as exc:
            service.upload(self._upload(service), b"x" * 2048, inspector)

        assert exc.value.status_code == 500
        stored_key = self.storage.upload_file.call_args.args[1]
        self.storage.delete_file.assert_called_once_with(stored_key)

    def test_storage_failure_is_500(self, mock_db, inspector):
        mock_db.get_inspection.return_value = ok(inspection_row())
        mock_db.get_total_evidence_size.return_value = ok(0)
        self.storage.upload_file.side_effect = RuntimeError("bucket missing")
        service = EvidenceService(mock_db, self.storage)

        with pytest.raises(HTTPException) as exc:
            service.upload(self._upload(service), b"x" * 2048, inspector)

        assert exc.value.detail == "Upload failed"
        mock_db.create_evidence.assert_not_called()

    def test_non_assignee_inspector_gets_403(self, mock_db, inspector):
        mock_db.get_inspection.return_value = ok(inspection_row(assigned_to="other"))
        service = EvidenceService(mock_db, self.storage)
        with pytest.raises(HTTPException) as exc:
            service.upload(self._upload(service), b"x" * 2048, inspector)
        assert exc.value.status_code == 403

    def test_unknown_inspection_is_400(self, mock_db, inspector):
        mock_db.get_inspection.return_value = not_found("Inspection")
        service = EvidenceService(mock_db, self.storage)
        with pytest.raises(RequestValidationError):
            service.upload(self._upload(service), b"x" * 2048, inspector)


class TestUpdateAndDelete:
    def setup_method(self):
        self.storage = MagicMock()
        self.storage.delete_file.return_value = True

    def test_only_managers_verify(self, mock_db, inspector):
        mock_db.get_evidence.return_value = ok(_evidence())
        with pytest.raises(HTTPException) as exc:
            EvidenceService(mock_db, self.storage).update_evidence("ev-1", EvidenceUpdate(verified=True), inspector)
        assert exc.value.status_code == 403

    def test_uploader_annotates(self, mock_db, inspector):
        mock_db.get_evidence.return_value = ok(_evidence())
        mock_db.update_evidence.return_value = ok(_evidence())
        update = EvidenceUpdate(annotations=[{"x": 0.5, "y": 0.25, "text": "crack"}])

        EvidenceService(mock_db, self.storage).update_evidence("ev-1", update, inspector)

        assert mock_db.update_evidence.call_args.args[1] == {"annotations": [{"x": 0.5, "y": 0.25, "text": "crack"}]}

    def test_delete_removes_row_then_blob(self, mock_db, manager):
        mock_db.get_evidence.return_value = ok(_evidence())
        mock_db.delete_evidence.return_value = ok(_evidence())

        EvidenceService(mock_db, self.storage).delete_evidence("ev-1", manager)

        self.storage.delete_file.assert_called_once_with("evidence/insp-1/inspector-1/abc.jpg")

    def test_blob_failure_does_not_fail_delete(self, mock_db, inspector):
        mock_db.get_evidence.return_value = ok(_evidence())
        mock_db.delete_evidence.return_value = ok(_evidence())
        self.storage.delete_file.return_value = False

        evidence = EvidenceService(mock_db, self.storage).delete_evidence("ev-1", inspector)

        assert evidence["id"] == "ev-1"

    def test_strangers_cannot_delete(self, mock_db, inspector):
        mock_db.get_evidence.return_value = ok(_evidence(uploaded_by="other"))
        with pytest.raises(HTTPException) as exc:
            EvidenceService(mock_db, self.storage).delete_evidence("ev-1", inspector)
        assert exc.value.status_code == 403
        mock_db.delete_evidence.assert_not_called()
