# app/services/ai_service.py
import re
from functools import lru_cache

import requests

from app.domain.errors import AiUnavailable
from app.utils.logging import get_logger
from app.utils.retry import http_retry
from app.utils.settings import (
    AI_TIMEOUT_SECONDS,
    GEMINI_API_KEY,
    GEMINI_API_URL,
    GEMINI_MODEL,
)

logger = get_logger(__name__)

MAX_SEARCH_TERMS = 10

# wstępy i formatowanie, które model dokleja mimo instrukcji
_UNWANTED = [
    re.compile(r"^(Oczywiscie|Oczywiście|Jasne|Absolutnie)!?\s*", re.IGNORECASE),
    re.compile(r"^Oto .*?:\s*", re.IGNORECASE),
    re.compile(r"^Prosz[eę], oto .*?:\s*", re.IGNORECASE),
    re.compile(r"^(Sure|Of course|Absolutely)!?\s*", re.IGNORECASE),
    re.compile(r"^Here is.*?:\s*", re.IGNORECASE),
    re.compile(r"^-{3,}\s*", re.MULTILINE),
    re.compile(r"^\*\*Tytu[lł]:?\*\*.*$", re.MULTILINE),
    re.compile(r"^\*\*Opis.*?:?\*\*\s*", re.MULTILINE),
]


def clean_text(text: str) -> str:
    cleaned = text
    for pattern in _UNWANTED:
        cleaned = pattern.sub("", cleaned)
    cleaned = re.sub(r"^\s*\n+", "", cleaned)
    cleaned = re.sub(r"\n{3,}", "\n\n", cleaned)
    return cleaned.strip()


def parse_search_terms(generated: str, query: str) -> list[str]:
    terms = [t.strip().lower() for t in generated.split(",")]
    terms = [t for t in terms if 0 < len(t) < 100][:MAX_SEARCH_TERMS]
    if query.lower() not in terms:
        terms.insert(0, query.lower())
    return terms


class GeminiClient:
    """Cienki klient REST do generateContent."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = GEMINI_MODEL,
        base_url: str = GEMINI_API_URL,
        timeout: int = AI_TIMEOUT_SECONDS,
    ):
        self.api_key = api_key if api_key is not None else GEMINI_API_KEY
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    @http_retry()
    def generate(self, prompt: str) -> str:
        url = f"{self.base_url}/models/{self.model}:generateContent"
        logger.info(f"GeminiClient POST {url}")

        resp = requests.post(
            url,
            params={"key": self.api_key},
            json={"contents": [{"parts": [{"text": prompt}]}]},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        data = resp.json()
        try:
            return data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise ValueError(f"Unexpected Gemini response: {e}") from e


class AiService:
    def __init__(self, client: GeminiClient | None = None):
        self.client = client or GeminiClient()

    def is_available(self) -> bool:
        return self.client.configured

    def generate_description(
        self,
        title: str,
        current_description: str | None = None,
        category_name: str | None = None,
        price: int | None = None,
    ) -> str:
        if not self.is_available():
            raise AiUnavailable()

        lines = [
            "Jesteś asystentem tworzącym opisy produktów dla studenckiego marketplace.",
            "",
            "INFORMACJE O PRODUKCIE:",
            f"- Tytuł: {title}",
        ]
        if category_name:
            lines.append(f"- Kategoria: {category_name}")
        if price:
            lines.append(f"- Cena: {price:,}".replace(",", "."))
        if current_description:
            lines.append(f"- Dodatkowe informacje: {current_description}")
        lines += [
            "",
            "INSTRUKCJE:",
            "1. Zwróć WYŁĄCZNIE opis produktu, bez wstępów i powitań",
            '2. Bez fraz typu "Oto opis...", bez "---" i dodatkowych nagłówków',
            "3. Maksymalnie 200 słów, przyjazny ale profesjonalny ton",
            "4. 2-3 emoji pasujące do produktu",
            "5. Nie wymyślaj cech, których nie da się potwierdzić",
            "",
            "OPIS:",
        ]

        try:
            text = clean_text(self.client.generate("\n".join(lines)))
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Description generation failed for '{title}': {e}")
            if current_description:
                return current_description
            raise AiUnavailable(f"Nie udało się wygenerować opisu: {e}") from e

        logger.info(f"Description generated for '{title}'")
        return text

    def generate_title(self, title: str, category_name: str | None = None) -> str:
        if not self.is_available():
            return title

        prompt = (
            "Popraw tytuł produktu dla marketplace.\n\n"
            f"Obecny tytuł: {title}\n"
            + (f"Kategoria: {category_name}\n" if category_name else "")
            + "\nMaksymalnie 100 znaków, bez emoji. Zwróć TYLKO poprawiony tytuł.\n\nTytuł:"
        )
        try:
            generated = self.client.generate(prompt).strip()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Title generation failed: {e}")
            return title
        return generated or title

    def search_terms(self, query: str) -> list[str]:
        if not self.is_available():
            return [query]

        prompt = (
            "Jesteś ekspertem od wyszukiwania produktów w studenckim marketplace.\n\n"
            f'FRAZA: "{query}"\n\n'
            "Wygeneruj maksymalnie 10 powiązanych terminów, synonimów i popularnych marek "
            "(po polsku i angielsku). Zwróć TYLKO terminy oddzielone przecinkami.\n\n"
            "TERMINY:"
        )
        try:
            generated = self.client.generate(prompt)
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Search terms generation failed for '{query}': {e}")
            return [query]

        terms = parse_search_terms(generated, query)
        logger.info(f"Search terms for '{query}': {', '.join(terms)}")
        return terms


@lru_cache
def get_ai_service() -> AiService:
    return AiService()
