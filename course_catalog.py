"""Shared course catalog configuration.

This module centralizes the course, schedule and province options that need
to stay in sync between the marketing pages, the hero handoff and the signup
form.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

TEAM_COURSE = "Team trajecten"
HANDOFF_KEY = "preselectedTrainingDate"

COURSE_OPTIONS = (
    {"value": "Scrum Master Basis / Beginner", "label": "Scrum Master Basis"},
    {"value": "Scrum Master Verdiept / Gevorderd", "label": "Scrum Master Verdiept"},
    {"value": "Product Owner Basis / Beginner", "label": "Product Owner Basis"},
    {"value": "Product Owner Verdiept", "label": "Product Owner Verdiept"},
    {"value": "Product Owner ism Scrum Master / Beginner", "label": "Product Owner ism Scrum Master"},
    {"value": "Agile Coach Opleiding", "label": "Agile Coach Opleiding"},
    {"value": "Agile Leiderschap Opleiding", "label": "Agile Leiderschap Opleiding"},
    {"value": "Sturen met Obeya", "label": "Sturen met Obeya"},
    {"value": "Facilitator in Obeya", "label": "Facilitator in Obeya"},
)

TRAINING_SCHEDULE_OPTIONS = (
    {"value": "Scrum Master: 2 en 3 maart in Utrecht", "label": "Scrum Master · 2 & 3 maart (Utrecht)"},
    {"value": "Product Owner: 20 en 21 april in Utrecht", "label": "Product Owner · 20 & 21 april (Utrecht)"},
    {"value": "Gecombineerde PO/SM: 13-16 april in Utrecht", "label": "Gecombineerde PO/SM · 13-16 april (Utrecht)"},
    {"value": "Andere datum in overleg", "label": "Andere datum (in overleg)"},
)

# Canonical display order of the selectable province buttons.
PROVINCES = (
    "Drenthe", "Flevoland", "Friesland", "Gelderland", "Groningen", "Limburg",
    "Noord-Brabant", "Noord-Holland", "Overijssel", "Utrecht", "Zeeland", "Zuid-Holland",
)

COURSE_PAGES: Dict[str, Dict[str, Any]] = {
    "scrum-master-basis": {
        "slug": "scrum-master-basis",
        "hero_title": "Scrum Master Basis training",
        "hero_subtitle": (
            "Leer in twee dagen hoe je als Scrum Master een team begeleidt.\n"
            "Praktijkgericht en afgestemd op de politieorganisatie."
        ),
        "preselected_course": "Scrum Master Basis / Beginner",
        "description": (
            "Een praktische introductie in de rol van Scrum Master: events, artefacten "
            "en het faciliteren van een team dat elke sprint waarde oplevert."
        ),
        "details": {"duration": "2 dagen", "certificate": "Ja, na afronding"},
        "price": {"base_price": 1195, "base_participants": 8, "max_participants": 14},
        "training_dates": [
            {
                "course_name": "Scrum Master",
                "dates": "2 & 3 maart",
                "location": "Utrecht",
                "value": "Scrum Master: 2 en 3 maart in Utrecht",
            },
        ],
    },
    "product-owner-basis": {
        "slug": "product-owner-basis",
        "hero_title": "Product Owner Basis training",
        "hero_subtitle": (
            "Word eigenaar van de backlog en stuur op waarde.\n"
            "Twee dagen met direct toepasbare technieken."
        ),
        "preselected_course": "Product Owner Basis / Beginner",
        "description": (
            "Je leert een productvisie opstellen, de backlog ordenen en samen met "
            "stakeholders keuzes maken over wat als eerste gebouwd wordt."
        ),
        "details": {"duration": "2 dagen", "certificate": "Ja, na afronding"},
        "price": {"base_price": 1195, "base_participants": 8, "max_participants": 14},
        "training_dates": [
            {
                "course_name": "Product Owner",
                "dates": "20 & 21 april",
                "location": "Utrecht",
                "value": "Product Owner: 20 en 21 april in Utrecht",
            },
        ],
    },
    "agile-coach-opleiding": {
        "slug": "agile-coach-opleiding",
        "hero_title": "Agile Coach Opleiding",
        "hero_subtitle": "Begeleid teams en afdelingen in hun wendbare manier van werken.",
        "preselected_course": "Agile Coach Opleiding",
        "description": (
            "Een verdiepende opleiding voor ervaren Scrum Masters die de stap naar "
            "coaching op team- en organisatieniveau willen maken."
        ),
        "details": {"duration": "6 dagen", "certificate": "Ja, na afronding"},
        "price": None,
        "training_dates": [],
    },
}


def course_page(slug: str | None) -> Optional[Dict[str, Any]]:
    if not slug:
        return None
    return COURSE_PAGES.get(slug.strip().lower())


def is_known_course(value: str | None) -> bool:
    return any(option["value"] == value for option in COURSE_OPTIONS)


def schedule_options_for(current: str | None) -> List[Dict[str, str]]:
    """Return the schedule options, keeping a handed-off value selectable.

    Hero dates can drift from the form's schedule list; an unknown current
    value is appended so the select still shows what was picked.
    """
    options = [dict(o) for o in TRAINING_SCHEDULE_OPTIONS]
    if current and all(o["value"] != current for o in options):
        options.append({"value": current, "label": current})
    return options


__all__ = [
    "TEAM_COURSE",
    "HANDOFF_KEY",
    "COURSE_OPTIONS",
    "TRAINING_SCHEDULE_OPTIONS",
    "PROVINCES",
    "COURSE_PAGES",
    "course_page",
    "is_known_course",
    "schedule_options_for",
]
