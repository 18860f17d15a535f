"""
Locale table and locale fallback resolution.
"""

import logging
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

from ..core.exceptions import SchemaError, UnknownLocaleError
from ..core.models import Locale


logger = logging.getLogger(__name__)


class LocaleTable:
    """
    Ordered set of the locales of a space.

    The table is validated on construction:
    - exactly one locale is the default
    - every fallback code names a locale of the table
    - no fallback chain loops back on itself
    """

    def __init__(self, locales: Iterable[Locale]):
        self._locales: List[Locale] = list(locales)
        self._by_code: Dict[str, Locale] = {}

        for locale in self._locales:
            if locale.code in self._by_code:
                raise SchemaError(f"Locale '{locale.code}' is defined twice")
            self._by_code[locale.code] = locale

        defaults = [locale for locale in self._locales if locale.default]
        if not defaults:
            raise SchemaError("Space has no default locale")
        if len(defaults) > 1:
            codes = ", ".join(locale.code for locale in defaults)
            raise SchemaError(f"Space has more than one default locale: {codes}")
        self._default = defaults[0]

        for locale in self._locales:
            self.fallback_chain(locale.code)

    @classmethod
    def from_list(cls, raw_locales: Iterable[Dict[str, Any]]) -> "LocaleTable":
        return cls(Locale.from_dict(raw) for raw in raw_locales)

    @property
    def default(self) -> Locale:
        return self._default

    @property
    def codes(self) -> List[str]:
        return [locale.code for locale in self._locales]

    def __iter__(self) -> Iterator[Locale]:
        return iter(self._locales)

    def __len__(self) -> int:
        return len(self._locales)

    def __contains__(self, code: object) -> bool:
        return code in self._by_code

    def get(self, code: str) -> Locale:
        """
        Look up a locale by code.

        Raises:
            UnknownLocaleError: If the code is not part of the table
        """
        try:
            return self._by_code[code]
        except KeyError:
            raise UnknownLocaleError(code, self.codes) from None

    def fallback_chain(self, code: str) -> List[str]:
        """
        Codes consulted for a value requested in ``code``, in order.

        The chain starts with ``code`` itself and follows fallback codes until
        a locale without fallback is reached.

        Raises:
            UnknownLocaleError: If ``code`` is not part of the table
            SchemaError: If the chain references an unknown locale or loops
        """
        chain = [self.get(code).code]
        current = self._by_code[code]

        while current.fallback_code is not None:
            if current.fallback_code not in self._by_code:
                raise SchemaError(
                    f"Locale '{current.code}' falls back to unknown locale '{current.fallback_code}'"
                )
            if current.fallback_code in chain:
                raise SchemaError(
                    f"Fallback chain of locale '{code}' is cyclic: "
                    f"{' -> '.join(chain + [current.fallback_code])}"
                )
            chain.append(current.fallback_code)
            current = self._by_code[current.fallback_code]

        return chain

    def value_for(self, values: Optional[Mapping[str, Any]], locale: Optional[str] = None) -> Any:
        """
        Pick the value of a per-locale map for the requested locale.

        Args:
            values: Map of locale code to value (may be None or empty)
            locale: Requested locale code; the default locale when omitted

        Returns:
            The first non-null value found along the fallback chain, or None

        Raises:
            UnknownLocaleError: If ``locale`` is not part of the table
        """
        code = locale if locale is not None else self._default.code
        chain = self.fallback_chain(code)

        if not values:
            return None

        # An explicit null counts as missing
        for candidate in chain:
            value = values.get(candidate)
            if value is not None:
                return value

        return None

    def to_list(self) -> List[Dict[str, Any]]:
        return [locale.to_dict() for locale in self._locales]


def value_without_table(
    values: Optional[Mapping[str, Any]],
    locale: Optional[str] = None,
    resource_locale: Optional[str] = None,
) -> Any:
    """
    Direct per-locale lookup used when a resource's space is unavailable.

    With no requested locale, the resource's own locale is used, or the only
    key when the map holds a single locale.
    """
    if not values:
        return None
    code = locale or resource_locale
    if code is None:
        if len(values) == 1:
            return next(iter(values.values()))
        logger.debug("No locale table available and no locale requested; value is ambiguous")
        return None
    return values.get(code)
