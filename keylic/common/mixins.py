"""
Mixins for common functionality.
"""

from __future__ import annotations

from typing import Any


class Configurable:
    """
    Mixin class for handling configuration overrides.

    Classes using this mixin call apply_overrides to set their attributes
    from explicit overrides, falling back to the uppercase attribute of a
    Config object.
    """

    def apply_overrides(
        self,
        overrides: dict[str, Any],
        config_obj: Any,
        attr_map: dict[str, str] | None = None,
    ) -> None:
        """
        Apply overrides to the instance using the config object as defaults.

        Sets self.attr = overrides[attr] when present and not None, otherwise
        getattr(config_obj, attr_map[attr]).

        Args:
            overrides: Dictionary of override values
            config_obj: Configuration object with uppercase attribute names
            attr_map: Instance attribute name -> config attribute name
        """
        if attr_map is None:
            attr_map = {}

        for attr, config_attr in attr_map.items():
            value = overrides.get(attr)
            if value is None:
                value = getattr(config_obj, config_attr, None)
            setattr(self, attr, value)
