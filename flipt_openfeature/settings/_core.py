from collections import ChainMap
from enum import Enum
import os
from typing import Any  # noqa:F401
from typing import Dict  # noqa:F401
from typing import FrozenSet  # noqa:F401
from typing import Optional  # noqa:F401

from envier import Env


class ValueSource(str, Enum):
    ENV_VAR = "env_var"
    CODE = "code"
    DEFAULT = "default"
    UNKNOWN = "unknown"


class FliptConfig(Env):
    """Configuration read from ``FLIPT_*`` environment variables, falling back
    to values given in code and then to the declared defaults.

    The origin of every value is recorded, see ``value_source``.
    """

    # Variables whose values are masked by ``describe``
    _secret_vars = frozenset()  # type: FrozenSet[str]

    def __init__(
        self,
        source: Optional[Dict[str, str]] = None,
        parent: Optional["Env"] = None,
    ) -> None:
        self.env_source = os.environ
        self.code_source = dict(source or {})

        # Environment variables win over values given in code
        super().__init__(source=ChainMap(self.env_source, self.code_source), parent=parent)

        self._value_source = {}  # type: Dict[str, ValueSource]
        for _, e in type(self).items(recursive=True):
            if not e.private:
                self._value_source[e.full_name] = self._origin(e.full_name)

    def _origin(self, env_name: str) -> ValueSource:
        if env_name in self.env_source:
            return ValueSource.ENV_VAR
        if env_name in self.code_source:
            return ValueSource.CODE
        return ValueSource.DEFAULT

    def value_source(self, env_name: str) -> ValueSource:
        return self._value_source.get(env_name, ValueSource.UNKNOWN)

    def describe(self) -> Dict[str, Any]:
        """Return the current values keyed by variable name, secrets masked."""
        values = {}  # type: Dict[str, Any]
        for name, e in type(self).items(recursive=True):
            if e.private:
                continue
            value = self
            for part in name.split("."):
                value = getattr(value, part)
            if e.full_name in self._secret_vars and value:
                value = "<redacted>"
            values[e.full_name] = value
        return values
