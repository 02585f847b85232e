"""
Translation files

One flat JSON object per language at ``<LOCALES_DIR>/<lang>.json``. Spanish
is the reference language: its keys define what every other language must
translate.
"""

import csv
import json
import logging
from io import StringIO
from pathlib import Path
from typing import Optional

from ...config import LOCALES_DIR

logger = logging.getLogger(__name__)

REFERENCE_LANGUAGE = "es"

LANGUAGES = {
    "es": "Español",
    "en": "English",
    "fr": "Français",
    "de": "Deutsch",
    "it": "Italiano",
    "pt": "Português",
    "ca": "Català",
    "eu": "Euskara",
    "gl": "Galego",
}


class CSVFormatError(ValueError):
    pass


class TranslationStore:
    def __init__(self, locales_dir: Optional[str] = None):
        self.locales_dir = Path(locales_dir or LOCALES_DIR)

    def _path(self, language: str) -> Path:
        return self.locales_dir / f"{language}.json"

    def load(self, language: str) -> dict[str, str]:
        path = self._path(language)
        if not path.exists():
            return {}
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
        return {str(k): "" if v is None else str(v) for k, v in data.items()}

    def save(self, language: str, translations: dict[str, str]) -> None:
        self.locales_dir.mkdir(parents=True, exist_ok=True)
        path = self._path(language)
        tmp_path = path.with_suffix(".json.tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(translations, f, ensure_ascii=False, indent=2, sort_keys=True)
            f.write("\n")
        tmp_path.replace(path)

    def reference_keys(self) -> list[str]:
        return sorted(self.load(REFERENCE_LANGUAGE))

    def update(self, language: str, updates: dict[str, str]) -> int:
        translations = self.load(language)
        translations.update(updates)
        self.save(language, translations)
        logger.info(f"🌐 {len(updates)} translations updated for {language}")
        return len(updates)

    def search(self, language: str, query: Optional[str] = None) -> dict[str, str]:
        translations = self.load(language)
        if not query:
            return dict(sorted(translations.items()))
        needle = query.lower()
        return {
            key: value
            for key, value in sorted(translations.items())
            if needle in key.lower() or needle in value.lower()
        }

    def stats(self) -> list[dict]:
        keys = self.reference_keys()
        total = len(keys)
        result = []
        for code, name in LANGUAGES.items():
            translations = self.load(code)
            translated = sum(1 for key in keys if (translations.get(key) or "").strip())
            result.append(
                {
                    "language": code,
                    "name": name,
                    "totalKeys": total,
                    "translatedKeys": translated,
                    "percentage": round(translated * 100 / total) if total else 0,
                }
            )
        return result

    def export_csv(self) -> str:
        """``key,<lang>...`` with one row per reference key, every value quoted"""
        languages = list(LANGUAGES)
        loaded = {code: self.load(code) for code in languages}

        output = StringIO()
        writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(["key", *languages])
        for key in self.reference_keys():
            writer.writerow([key, *(loaded[code].get(key, "") for code in languages)])
        return output.getvalue()

    def import_csv(self, content: str) -> dict:
        """Merge non-empty cells into the language files; unknown languages are ignored"""
        reader = csv.reader(StringIO(content.lstrip("\ufeff")))
        header = next(reader, None)
        if not header or header[0].strip().lower() != "key":
            raise CSVFormatError("CSV header must start with 'key'")

        columns = [
            (index, code.strip())
            for index, code in enumerate(header[1:], start=1)
            if code.strip() in LANGUAGES
        ]
        updates: dict[str, dict[str, str]] = {code: {} for _, code in columns}

        for row in reader:
            if not row or not row[0].strip():
                continue
            key = row[0].strip()
            for index, code in columns:
                if index < len(row) and row[index] != "":
                    updates[code][key] = row[index]

        imported = 0
        touched = []
        for code, values in updates.items():
            if values:
                imported += self.update(code, values)
                touched.append(code)

        return {"imported": imported, "languages": touched}
