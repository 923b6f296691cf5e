"""Lead-capture form state, validation and submission flow.

The form object is framework-free: the Flask views in ``signup.py`` build one
per request, replay the posted values into it and render whatever state it
ends up in.  Everything user-facing is Dutch because the site is.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, MutableMapping, Optional, Protocol, Set, Tuple, Union

from course_catalog import HANDOFF_KEY, PROVINCES, TEAM_COURSE

log = logging.getLogger(__name__)


# ───────────────────────────────────────────────────────────────
# Errors
# ───────────────────────────────────────────────────────────────
class SignupError(Exception):
    """Base class for everything the signup flow raises on purpose."""


class FormValidationError(SignupError):
    def __init__(self, message: str, field_name: str):
        super().__init__(message)
        self.message = message
        self.field_name = field_name


class UnknownFieldError(SignupError):
    pass


class UnknownVariantError(SignupError):
    pass


class SubmissionInProgress(SignupError):
    pass


class SubmissionTransportError(SignupError):
    """The request never produced an HTTP response (DNS, refused, reset...)."""


# ───────────────────────────────────────────────────────────────
# Model
# ───────────────────────────────────────────────────────────────
class Variant(str, Enum):
    TRAINING = "training"
    TEAM = "team"

    @classmethod
    def parse(cls, raw: Union["Variant", str, None]) -> "Variant":
        if isinstance(raw, cls):
            return raw
        try:
            return cls((raw or "").strip().lower())
        except ValueError:
            raise UnknownVariantError(f"Unknown signup variant: {raw!r}") from None


class SubmissionStatus(str, Enum):
    IDLE = "idle"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class TrainingDetails:
    training_date: str = ""
    cost_center: str = ""


@dataclass
class TeamDetails:
    phone: str = ""


Details = Union[TrainingDetails, TeamDetails]


@dataclass
class FormState:
    name: str = ""
    email: str = ""
    province: Set[str] = field(default_factory=set)
    course: str = ""
    details: Details = field(default_factory=TrainingDetails)
    eenheid: str = ""
    team: str = ""
    message: str = ""
    privacy_accepted: bool = False
    # Tag display order only; equality goes through the set.
    province_order: List[str] = field(default_factory=list, compare=False, repr=False)

    def selected_provinces(self) -> List[str]:
        return [p for p in self.province_order if p in self.province]

    def copy(self) -> "FormState":
        return replace(
            self,
            province=set(self.province),
            details=replace(self.details),
            province_order=list(self.province_order),
        )


# Wire name -> (owner, attribute). Owner "details" means the variant struct.
WIRE_FIELDS: Dict[str, Tuple[str, str]] = {
    "name": ("state", "name"),
    "email": ("state", "email"),
    "province": ("state", "province"),
    "course": ("state", "course"),
    "trainingDate": ("details", "training_date"),
    "phone": ("details", "phone"),
    "costCenter": ("details", "cost_center"),
    "eenheid": ("state", "eenheid"),
    "team": ("state", "team"),
    "message": ("state", "message"),
    "privacyAccepted": ("state", "privacy_accepted"),
}
_PY_TO_WIRE = {attr: wire for wire, (_owner, attr) in WIRE_FIELDS.items()}

_COMMON_FIELDS = ("name", "email", "province", "eenheid", "team", "message", "privacyAccepted")
EDITABLE_FIELDS = {
    "training": _COMMON_FIELDS + ("course", "trainingDate", "costCenter"),
    "team": _COMMON_FIELDS + ("phone",),
}

LABELS = {
    "training": {
        "heading": "Aanmelden voor training",
        "intro": "Vul het formulier in en we nemen zo snel mogelijk contact met je op.",
        "message_label": "Bericht",
        "message_placeholder": "Vertel ons meer over je wensen of vragen...",
        "submit": "Aanmelden voor training",
    },
    "team": {
        "heading": "Heb je interesse in een team traject",
        "intro": "Laat je gegevens achter en we plannen graag een moment om jullie teamtraject te bespreken.",
        "message_label": "Vertel ons meer over je doelstelling voor het team traject",
        "message_placeholder": "Vertel ons meer over je doelstelling team traject.",
        "submit": "Aanvraag indienen",
    },
}
SUBMITTING_LABEL = "Verzenden..."


def _bool(v: Any, default: bool = False) -> bool:
    if v is None:
        return default
    if isinstance(v, bool):
        return v
    return str(v).strip().lower() in {"1", "true", "yes", "y", "on"}


def _text(v: Any) -> str:
    return "" if v is None else str(v)


# ───────────────────────────────────────────────────────────────
# Handoff
# ───────────────────────────────────────────────────────────────
class HandoffSlot:
    """Write-once / read-once-and-clear accessor over a browser-scoped store.

    The hero writes a training date, the training form consumes it on its
    first render.  ``store`` is the Flask session in the app and a plain dict
    in tests.
    """

    def __init__(self, store: MutableMapping[str, Any], key: str = HANDOFF_KEY):
        self._store = store
        self.key = key

    def offer(self, value: str | None) -> None:
        value = (value or "").strip()
        if value:
            self._store[self.key] = value

    def peek(self) -> Optional[str]:
        value = self._store.get(self.key)
        return value if isinstance(value, str) and value.strip() else None

    def consume(self) -> Optional[str]:
        value = self._store.pop(self.key, None)
        if value is None:
            return None
        if not isinstance(value, str):
            log.warning("Discarding non-string handoff value under %s", self.key)
            return None
        return value.strip() or None


# ───────────────────────────────────────────────────────────────
# Form
# ───────────────────────────────────────────────────────────────
class SubmissionSender(Protocol):
    def send(self, payload: Dict[str, Any]) -> bool: ...


class LeadCaptureForm:
    def __init__(self, variant: Union[Variant, str] = Variant.TRAINING, preselected_course: str = ""):
        self._variant = Variant.parse(variant)
        self.preselected_course = (preselected_course or "").strip()
        self.state = self.initial_state()
        self.status = SubmissionStatus.IDLE
        self.submitting = False
        self._mounted = False

    @property
    def variant(self) -> Variant:
        return self._variant

    @property
    def is_team(self) -> bool:
        return self._variant is Variant.TEAM

    @property
    def labels(self) -> Dict[str, str]:
        labels = dict(LABELS[self._variant.value])
        if self.submitting:
            labels["submit"] = SUBMITTING_LABEL
        return labels

    def editable_fields(self) -> Tuple[str, ...]:
        return EDITABLE_FIELDS[self._variant.value]

    def initial_state(self) -> FormState:
        if self.is_team:
            return FormState(course=TEAM_COURSE, details=TeamDetails())
        return FormState(course=self.preselected_course, details=TrainingDetails())

    def mount(self, handoff: HandoffSlot | None = None) -> None:
        """First-render hook; applies the hero's training date at most once."""
        if self._mounted:
            return
        self._mounted = True
        if self.is_team or handoff is None:
            return
        value = handoff.consume()
        if value:
            self.state.details.training_date = value

    # ---- field mutation -------------------------------------------------
    def update(self, name: str, value: Any) -> None:
        wire = name if name in WIRE_FIELDS else _PY_TO_WIRE.get(name)
        if wire is None or wire not in self.editable_fields():
            raise UnknownFieldError(f"{name!r} is not a field of the {self._variant.value} form")

        owner, attr = WIRE_FIELDS[wire]
        if wire == "province":
            self.set_provinces(value or [])
            return
        if wire == "privacyAccepted":
            value = _bool(value)
        else:
            value = _text(value)
        target = self.state.details if owner == "details" else self.state
        setattr(target, attr, value)

    def set_provinces(self, provinces) -> None:
        if isinstance(provinces, str):
            provinces = [provinces]
        if not isinstance(provinces, (list, tuple)) or not all(isinstance(p, str) for p in provinces):
            raise UnknownFieldError("province must be a list of province names")
        self.state.province = set()
        self.state.province_order = []
        for p in provinces:
            if p not in self.state.province:
                self.toggle_province(p)

    def toggle_province(self, province: str) -> None:
        if province not in PROVINCES:
            raise UnknownFieldError(f"Unknown province: {province!r}")
        if province in self.state.province:
            self.state.province.discard(province)
            self.state.province_order.remove(province)
        else:
            self.state.province.add(province)
            self.state.province_order.append(province)

    def remove_province(self, province: str) -> None:
        if province in self.state.province:
            self.toggle_province(province)

    def selectable_provinces(self) -> List[Dict[str, Any]]:
        return [{"name": p, "selected": p in self.state.province} for p in PROVINCES]

    # ---- validation -----------------------------------------------------
    def validate(self) -> None:
        s = self.state
        if not s.privacy_accepted:
            raise FormValidationError("Je moet akkoord gaan met de privacyverklaring.", "privacyAccepted")
        if not s.province:
            raise FormValidationError("Je moet ten minste één provincie selecteren.", "province")

        details = s.details
        if isinstance(details, TrainingDetails):
            if not details.cost_center.strip():
                raise FormValidationError("Kostenplaats is verplicht.", "costCenter")
            if not details.training_date.strip():
                raise FormValidationError("Selecteer een beschikbare trainingsdatum.", "trainingDate")
        elif not details.phone.strip():
            raise FormValidationError("Telefoonnummer is verplicht.", "phone")

        if not s.eenheid.strip():
            raise FormValidationError("Eenheid is verplicht.", "eenheid")
        if not s.team.strip():
            raise FormValidationError("Team is verplicht.", "team")

    # ---- submission -----------------------------------------------------
    def payload(self) -> Dict[str, Any]:
        s = self.state
        details = s.details
        return {
            "name": s.name,
            "email": s.email,
            "province": s.selected_provinces(),
            "course": s.course,
            "trainingDate": getattr(details, "training_date", ""),
            "phone": getattr(details, "phone", ""),
            "costCenter": getattr(details, "cost_center", ""),
            "eenheid": s.eenheid,
            "team": s.team,
            "message": s.message,
            "privacyAccepted": s.privacy_accepted,
        }

    def submit(self, sender: SubmissionSender) -> SubmissionStatus:
        """Validate, send once, and reduce the outcome to a status.

        Raises FormValidationError before any network call when a rule fails.
        """
        if self.submitting:
            raise SubmissionInProgress("A submission is already in flight for this form")
        self.validate()

        self.submitting = True
        self.status = SubmissionStatus.IDLE
        try:
            ok = sender.send(self.payload())
        except SubmissionTransportError:
            log.exception("Error submitting signup form")
            ok = False
        finally:
            self.submitting = False

        if ok:
            self.status = SubmissionStatus.SUCCESS
            self.reset()
        else:
            self.status = SubmissionStatus.ERROR
        return self.status

    def reset(self) -> None:
        self.state = self.initial_state()


__all__ = [
    "SignupError",
    "FormValidationError",
    "UnknownFieldError",
    "UnknownVariantError",
    "SubmissionInProgress",
    "SubmissionTransportError",
    "Variant",
    "SubmissionStatus",
    "TrainingDetails",
    "TeamDetails",
    "FormState",
    "WIRE_FIELDS",
    "EDITABLE_FIELDS",
    "SUBMITTING_LABEL",
    "SubmissionSender",
    "HandoffSlot",
    "LeadCaptureForm",
]
