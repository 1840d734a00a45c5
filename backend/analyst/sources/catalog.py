"""
Static ontology catalog: countries, narratives, sample articles and events.

Serves as the in-memory document source next to the live events feed and as
the seed for the knowledge graph snapshot.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from analyst.models import TemporalDocument


@dataclass(frozen=True)
class Country:
    id: str
    name: str
    name_ru: str
    tier: int
    region: str


@dataclass(frozen=True)
class Narrative:
    id: int
    title: str
    title_ru: str
    countries: Tuple[str, ...]
    status: str
    first_seen: str
    last_seen: str
    keywords: Tuple[str, ...]


@dataclass(frozen=True)
class Article:
    id: int
    title: str
    source: str
    country_id: str
    published_at: str
    sentiment: float
    narrative_id: Optional[int] = None


@dataclass(frozen=True)
class Event:
    id: int
    title: str
    date: str
    country_id: str
    impact: str
    related_narrative_ids: Tuple[int, ...]


COUNTRIES: List[Country] = [
    Country("KZ", "Kazakhstan", "Казахстан", 1, "Central Asia"),
    Country("UZ", "Uzbekistan", "Узбекистан", 1, "Central Asia"),
    Country("KG", "Kyrgyzstan", "Кыргызстан", 2, "Central Asia"),
    Country("GE", "Georgia", "Грузия", 1, "South Caucasus"),
    Country("MD", "Moldova", "Молдова", 1, "Eastern Europe"),
    Country("AZ", "Azerbaijan", "Азербайджан", 2, "South Caucasus"),
    Country("AM", "Armenia", "Армения", 2, "South Caucasus"),
    Country("TJ", "Tajikistan", "Таджикистан", 3, "Central Asia"),
]

NARRATIVES: List[Narrative] = [
    Narrative(1, "Gas transit negotiations", "Переговоры по газовому транзиту",
              ("KZ", "UZ", "KG"), "active", "2025-11-15", "2026-02-12",
              ("газ", "транзит", "Газпром", "CNPC")),
    Narrative(2, "EU integration push", "Курс на интеграцию с ЕС",
              ("GE", "MD"), "active", "2025-08-20", "2026-02-11",
              ("ЕС", "евроинтеграция", "визы", "ассоциация")),
    Narrative(3, "Military base discussions", "Обсуждение военных баз",
              ("KG", "TJ"), "fading", "2026-01-05", "2026-02-08",
              ("база", "ОДКБ", "военные", "вывод")),
    Narrative(4, "De-dollarization trend", "Дедолларизация расчётов",
              ("KZ", "UZ", "AZ"), "active", "2025-12-01", "2026-02-12",
              ("доллар", "нацвалюта", "SWIFT", "расчёты")),
    Narrative(5, "Armenian-Azerbaijani normalization", "Нормализация армяно-азербайджанских отношений",
              ("AM", "AZ", "GE"), "active", "2025-09-10", "2026-02-11",
              ("мир", "Карабах", "коридор", "граница")),
]

ARTICLES: List[Article] = [
    Article(101, "Казахстан и Узбекистан обсуждают новый газовый маршрут", "Tengrinews", "KZ", "2026-02-12T08:00:00Z", 0.2, 1),
    Article(102, "CNPC расширяет присутствие в Центральной Азии", "Zakon.kz", "KZ", "2026-02-11T14:00:00Z", 0.1, 1),
    Article(103, "Узбекистан ведёт переговоры с Газпромом о транзите", "Подробно.uz", "UZ", "2026-02-11T10:00:00Z", -0.3, 1),
    Article(104, "Грузия приостанавливает переговоры с ЕС", "Civil.ge", "GE", "2026-02-10T16:00:00Z", -0.7, 2),
    Article(105, "Молдова ускоряет имплементацию соглашения об ассоциации", "Newsmaker.md", "MD", "2026-02-10T12:00:00Z", 0.6, 2),
    Article(106, "Баку и Ереван договорились о демаркации", "Кавказский узел", "AZ", "2026-02-09T09:00:00Z", 0.5, 5),
    Article(107, "Армения настаивает на международных гарантиях", "Sputnik Армения", "AM", "2026-02-09T11:00:00Z", -0.2, 5),
    Article(108, "Тенге укрепляется на фоне дедолларизации", "Tengrinews", "KZ", "2026-02-08T07:00:00Z", 0.4, 4),
    Article(109, "ОДКБ пересматривает формат присутствия в ЦА", "Кабар", "KG", "2026-02-07T15:00:00Z", -0.4, 3),
    Article(110, "Тбилиси: массовые протесты за евроинтеграцию", "Грузия Online", "GE", "2026-02-06T18:00:00Z", -0.8, 2),
]

EVENTS: List[Event] = [
    Event(201, "Саммит ЦА по энергетике", "2026-02-10", "KZ", "high", (1, 4)),
    Event(202, "Протесты в Тбилиси", "2026-02-06", "GE", "high", (2,)),
    Event(203, "Встреча Алиев-Пашинян в Мюнхене", "2026-02-08", "AZ", "high", (5,)),
    Event(204, "Визит делегации ОДКБ в Бишкек", "2026-02-05", "KG", "medium", (3,)),
]


def get_narrative(narrative_id: int) -> Optional[Narrative]:
    return next((n for n in NARRATIVES if n.id == narrative_id), None)


def article_to_document(article: Article) -> TemporalDocument:
    return TemporalDocument(
        article_id=article.id,
        title=article.title,
        source=article.source,
        published_at=article.published_at,
        sentiment=article.sentiment,
        country_code=article.country_id,
        narrative_id=article.narrative_id,
    )


def catalog_documents(country_codes: Optional[List[str]] = None) -> List[TemporalDocument]:
    """
    Catalog articles as engine documents.

    Args:
        country_codes: Restrict to these countries (case-insensitive); all when None

    Returns:
        List of TemporalDocument in catalog order
    """
    if country_codes is None:
        return [article_to_document(a) for a in ARTICLES]
    wanted = {code.upper() for code in country_codes}
    return [article_to_document(a) for a in ARTICLES if a.country_id in wanted]
