"""Multi-locale string values.

Tables shipped with an English client only fill ``en_gb``; the other slots
hold strings for other localizations. ``flags`` is stored unchanged.

The ``Const`` variants are produced by the constant path and hold
memoryview slices of the embedded buffer instead of decoded strings.
"""

from dataclasses import dataclass, fields
from typing import Tuple

from dbc.field_types import EXTENDED_LOCALE_SLOTS, LOCALE_SLOTS

_EMPTY = memoryview(b"")


@dataclass
class LocalizedString:
    """8 locale strings and a flags word."""

    en_gb: str = ""  # English, Great Britain
    ko_kr: str = ""  # Korean, Korea
    fr_fr: str = ""  # French, France
    de_de: str = ""  # German, Germany
    en_cn: str = ""  # English, China
    en_tw: str = ""  # English, Taiwan
    es_es: str = ""  # Spanish, Spain
    es_mx: str = ""  # Spanish, Mexico
    flags: int = 0

    SLOTS = LOCALE_SLOTS

    def strings(self) -> Tuple[str, ...]:
        return tuple(getattr(self, slot) for slot in self.SLOTS)


@dataclass
class ExtendedLocalizedString:
    """16 locale strings and a flags word."""

    en_gb: str = ""  # English, Great Britain
    ko_kr: str = ""  # Korean, Korea
    fr_fr: str = ""  # French, France
    de_de: str = ""  # German, Germany
    en_cn: str = ""  # English, China
    en_tw: str = ""  # English, Taiwan
    es_es: str = ""  # Spanish, Spain
    es_mx: str = ""  # Spanish, Mexico
    ru_ru: str = ""  # Russian, Russia
    ja_jp: str = ""  # Japanese, Japan
    pt_pt: str = ""  # Portuguese, Portugal (also Brazil)
    it_it: str = ""  # Italian, Italy
    unknown_12: str = ""  # Possibly unused
    unknown_13: str = ""
    unknown_14: str = ""
    unknown_15: str = ""
    flags: int = 0

    SLOTS = EXTENDED_LOCALE_SLOTS

    def strings(self) -> Tuple[str, ...]:
        return tuple(getattr(self, slot) for slot in self.SLOTS)


class _ConstStrings:
    """Shared behaviour of the borrowed variants."""

    SLOTS: Tuple[str, ...] = ()
    OWNED = None

    @classmethod
    def empty(cls):
        return cls(*([_EMPTY] * len(cls.SLOTS)), 0)

    def strings(self) -> Tuple[memoryview, ...]:
        return tuple(getattr(self, slot) for slot in self.SLOTS)

    def to_owned(self):
        """Decode every slot into the owned variant."""
        values = {slot: bytes(getattr(self, slot)).decode("utf-8") for slot in self.SLOTS}
        return self.OWNED(flags=self.flags, **values)

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.flags == other.flags and all(
            bytes(a) == bytes(b) for a, b in zip(self.strings(), other.strings())
        )

    def __hash__(self):
        return hash((self.flags,) + tuple(bytes(s) for s in self.strings()))


@dataclass(frozen=True, eq=False)
class ConstLocalizedString(_ConstStrings):
    en_gb: memoryview
    ko_kr: memoryview
    fr_fr: memoryview
    de_de: memoryview
    en_cn: memoryview
    en_tw: memoryview
    es_es: memoryview
    es_mx: memoryview
    flags: int

    SLOTS = LOCALE_SLOTS
    OWNED = LocalizedString


@dataclass(frozen=True, eq=False)
class ConstExtendedLocalizedString(_ConstStrings):
    en_gb: memoryview
    ko_kr: memoryview
    fr_fr: memoryview
    de_de: memoryview
    en_cn: memoryview
    en_tw: memoryview
    es_es: memoryview
    es_mx: memoryview
    ru_ru: memoryview
    ja_jp: memoryview
    pt_pt: memoryview
    it_it: memoryview
    unknown_12: memoryview
    unknown_13: memoryview
    unknown_14: memoryview
    unknown_15: memoryview
    flags: int

    SLOTS = EXTENDED_LOCALE_SLOTS
    OWNED = ExtendedLocalizedString


def _check_slots():
    # Field order must match the on-disk slot order
    layouts = (
        (LocalizedString, LOCALE_SLOTS),
        (ConstLocalizedString, LOCALE_SLOTS),
        (ExtendedLocalizedString, EXTENDED_LOCALE_SLOTS),
        (ConstExtendedLocalizedString, EXTENDED_LOCALE_SLOTS),
    )
    for cls, slots in layouts:
        names = tuple(f.name for f in fields(cls))
        if names != slots + ("flags",):
            raise RuntimeError(f"{cls.__name__} fields {names} do not match slots {slots}")


_check_slots()
