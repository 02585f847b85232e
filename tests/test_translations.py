import csv
import json
from io import StringIO

import pytest

from pianomanager.domain.translations.router import get_translation_store
from pianomanager.domain.translations.store import CSVFormatError, TranslationStore
from pianomanager.main import app


@pytest.fixture
def store(tmp_path):
    (tmp_path / "es.json").write_text(
        json.dumps({"common.save": "Guardar", "common.cancel": "Cancelar", "pianos.title": "Pianos"}),
        encoding="utf-8",
    )
    (tmp_path / "en.json").write_text(json.dumps({"common.save": "Save", "common.cancel": ""}), encoding="utf-8")

    store = TranslationStore(str(tmp_path))
    app.dependency_overrides[get_translation_store] = lambda: store
    yield store
    app.dependency_overrides.pop(get_translation_store, None)


def _upload(client, headers, content: str):
    return client.post(
        "/translations/import",
        files={"file": ("translations.csv", content.encode("utf-8"), "text/csv")},
        headers=headers,
    )


class TestStore:
    def test_search_matches_keys_and_values(self, store):
        assert store.search("es", "guard") == {"common.save": "Guardar"}
        assert list(store.search("es", "COMMON")) == ["common.cancel", "common.save"]

    def test_update_writes_sorted_json(self, store, tmp_path):
        store.update("fr", {"common.save": "Enregistrer"})

        assert json.loads((tmp_path / "fr.json").read_text(encoding="utf-8")) == {"common.save": "Enregistrer"}
        assert not (tmp_path / "fr.json.tmp").exists()

    def test_import_requires_key_header(self, store):
        with pytest.raises(CSVFormatError):
            store.import_csv("clave,es\ncommon.save,Guardar\n")

    def test_import_ignores_unknown_languages_and_blank_cells(self, store):
        result = store.import_csv('\ufeffkey,en,xx\ncommon.cancel,Cancel,?\npianos.title,,\n')

        assert result == {"imported": 1, "languages": ["en"]}
        assert store.load("en") == {"common.save": "Save", "common.cancel": "Cancel"}


class TestEndpoints:
    def test_languages(self, client, user_headers):
        languages = client.get("/translations/languages", headers=user_headers).json()
        assert {"code": "es", "name": "Español", "isReference": True} in languages
        assert len(languages) == 9

    def test_get_language_with_search(self, client, user_headers, store):
        body = client.get("/translations/en", params={"search": "save"}, headers=user_headers).json()
        assert body == {"language": "en", "translations": {"common.save": "Save"}}

    def test_unsupported_language(self, client, user_headers, store):
        assert client.get("/translations/xx", headers=user_headers).status_code == 400

    def test_stats_are_relative_to_spanish(self, client, user_headers, store):
        stats = {s["language"]: s for s in client.get("/translations/stats", headers=user_headers).json()}

        assert stats["es"]["percentage"] == 100
        assert stats["en"]["totalKeys"] == 3
        assert stats["en"]["translatedKeys"] == 1
        assert stats["en"]["percentage"] == 33
        assert stats["de"]["translatedKeys"] == 0

    def test_keys(self, client, user_headers, store):
        keys = client.get("/translations/keys", headers=user_headers).json()
        assert keys == ["common.cancel", "common.save", "pianos.title"]

    def test_export_is_admin_only(self, client, user_headers, admin_headers, store):
        assert client.get("/translations/export", headers=user_headers).status_code == 403

        response = client.get("/translations/export", headers=admin_headers)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert response.text.splitlines()[1].startswith('"common.cancel","Cancelar",""')

        rows = list(csv.reader(StringIO(response.text)))
        assert rows[0][:3] == ["key", "es", "en"]
        assert len(rows) == 4

    def test_import_upload(self, client, admin_headers, store):
        response = _upload(client, admin_headers, "key,en,fr\npianos.title,Pianos,Pianos\n")

        assert response.json() == {"imported": 2, "languages": ["en", "fr"]}
        assert store.load("fr") == {"pianos.title": "Pianos"}

    def test_import_with_bad_header(self, client, admin_headers, store):
        response = _upload(client, admin_headers, "id,en\n1,x\n")
        assert response.status_code == 400
        assert response.json()["detail"] == "CSV header must start with 'key'"

    def test_edits_are_admin_only(self, client, user_headers, admin_headers, store):
        payload = {"language": "en", "key": "pianos.title", "value": "Pianos"}
        assert client.put("/translations", json=payload, headers=user_headers).status_code == 403
        assert client.put("/translations", json=payload, headers=admin_headers).status_code == 200

        bulk = {"language": "de", "translations": {"common.save": "Speichern", "common.cancel": "Abbrechen"}}
        assert client.put("/translations/bulk", json=bulk, headers=admin_headers).json() == {
            "success": True,
            "count": 2,
        }
        assert store.load("en")["pianos.title"] == "Pianos"
        assert store.load("de")["common.cancel"] == "Abbrechen"

    def test_bulk_rejects_unknown_language(self, client, admin_headers, store):
        response = client.put(
            "/translations/bulk", json={"language": "xx", "translations": {"a": "b"}}, headers=admin_headers
        )
        assert response.status_code == 400
