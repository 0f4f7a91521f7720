import logging
from typing import Any, Dict

import god.settings as default_settings

log = logging.getLogger(__name__)


class MergedSettings:
    """
    Merges the default settings with command-line overrides.

    This class provides a unified, attribute-based access point for all
    configuration of a supervisor run. It follows a clear precedence:
    1. Base values from `settings.py`.
    2. Overrides from the environment or a `.env` file (handled by `python-dotenv` in settings.py).
    3. Overrides from the command line, for flags the user actually passed.
    """

    def __init__(self) -> None:
        """Initializes the settings object by loading the defaults."""
        self._load_defaults()

    def _load_defaults(self) -> None:
        """Loads all uppercase attributes from the settings.py module as defaults."""
        for key in dir(default_settings):
            if key.isupper():
                setattr(self, key, getattr(default_settings, key))

    def apply_overrides(self, overrides: Dict[str, Any]) -> None:
        """
        Applies overrides on top of the current values.

        `None` values mean "not given" and leave the setting untouched. Keys that
        do not exist in `settings.py` are ignored.

        :param overrides: A dictionary of setting names to new values.
        """
        for key, value in overrides.items():
            if value is None:
                continue
            if not hasattr(self, key):
                log.warning(f"Override setting '{key}' not found in default settings. Ignoring.")
                continue
            setattr(self, key, value)
            log.debug(f"Overridden setting: {key} = {value!r}")

    def as_dict(self) -> Dict[str, Any]:
        """Returns every setting as a plain dictionary."""
        return {key: value for key, value in vars(self).items() if key.isupper()}
