"""Dataset registry -- session state, variable keying and selection.

The registry is the only writer of :class:`~logkit_tabular.models.SessionState`.
Every mutation runs under one lock so a dataset, its variable configs, its
index entries and its selected keys appear and disappear together.

Global variable keys are ``<source id><separator><variable name>``.  Source
ids are cleaned so they can never contain the separator, and reverse lookups
go through an explicit index populated at registration time instead of
prefix-matching key strings.
"""

from __future__ import annotations

import logging
import re
import threading

from logkit_core.models import DataPoint, Dataset, VariableConfig

from logkit_tabular.config import TabularParserConfig
from logkit_tabular.models import SessionState, SessionSummary, VariableRef
from logkit_tabular.palette import assign_colors

logger = logging.getLogger("logkit_tabular")

_EXTENSION_RE = re.compile(r"\.(csv|txt|xlsx|xls)$", re.IGNORECASE)


def clean_source_id(file_name: str, separator: str = "::") -> str:
    """Derive a dataset identifier from a file name.

    Drops directory components and the ``.csv``/``.txt``/``.xlsx``/``.xls``
    extension, then removes every character of *separator* so the result
    can never contain it.
    """
    base = re.split(r"[\\/]", file_name)[-1]
    base = _EXTENSION_RE.sub("", base)
    for char in set(separator):
        base = base.replace(char, "")
    return base.strip() or "dataset"


def make_variable_key(source_id: str, variable_name: str, separator: str = "::") -> str:
    """Build the global variable key for ``(source_id, variable_name)``."""
    return f"{source_id}{separator}{variable_name}"


class DatasetRegistry:
    """Owns the session state and every mutation of it.

    Parameters
    ----------
    config:
        Pipeline configuration (palette and key separator).  Uses defaults
        when *None*.
    """

    def __init__(self, config: TabularParserConfig | None = None) -> None:
        self._config = config or TabularParserConfig()
        self._state = SessionState()
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def config(self) -> TabularParserConfig:
        return self._config

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def separator(self) -> str:
        return self._config.key_separator

    @property
    def color_cursor(self) -> int:
        return self._state.color_cursor

    @property
    def datasets(self) -> dict[str, Dataset]:
        return self._state.datasets

    @property
    def variable_configs(self) -> dict[str, VariableConfig]:
        return self._state.variable_configs

    @property
    def selected_keys(self) -> list[str]:
        return list(self._state.selected_keys)

    def keys_for(self, source_id: str) -> list[str]:
        """Global variable keys of one dataset, in column order."""
        dataset = self._state.datasets.get(source_id)
        if dataset is None:
            return []
        return [
            make_variable_key(source_id, name, self.separator)
            for name in dataset.variable_names
        ]

    def lookup(self, key: str) -> VariableRef | None:
        """Resolve a global variable key to its dataset column."""
        return self._state.key_index.get(key)

    def series(self, key: str) -> list[DataPoint] | None:
        """Return the points behind *key*, or ``None`` for unknown keys."""
        ref = self.lookup(key)
        if ref is None:
            return None
        dataset = self._state.datasets.get(ref.source_id)
        if dataset is None:
            return None
        return dataset.series.get(ref.variable_name)

    def summary(self) -> SessionSummary:
        datasets = self._state.datasets.values()
        return SessionSummary(
            dataset_count=len(self._state.datasets),
            variable_count=sum(len(d.variable_names) for d in datasets),
            data_point_count=sum(d.row_count for d in datasets),
        )

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, dataset: Dataset) -> Dataset:
        """Merge a fully parsed dataset into the session.

        A ``source_id`` already in use gets a ``_<n>`` suffix so re-uploads
        of like-named files never merge.  Colors are drawn from the session
        palette cursor, which advances by one per variable.  Existing
        variable configs are never overwritten.

        Returns
        -------
        Dataset
            The dataset as stored (final ``source_id`` and colors).
        """
        sep = self.separator
        with self._lock:
            state = self._state
            source_id = self._unique_source_id(
                clean_source_id(dataset.source_id, sep)
            )
            colors, state.color_cursor = assign_colors(
                dataset.variable_names, state.color_cursor, self._config.palette
            )
            stored = dataset.model_copy(
                update={"source_id": source_id, "color_assignment": colors}
            )
            state.datasets[source_id] = stored

            for name in stored.variable_names:
                key = make_variable_key(source_id, name, sep)
                state.key_index[key] = VariableRef(
                    source_id=source_id, variable_name=name
                )
                if key not in state.variable_configs:
                    state.variable_configs[key] = VariableConfig(
                        enabled=False, display_label=name, color=colors[name]
                    )

        logger.info(
            "logkit_tabular | registered | source_id=%s | variables=%d | rows=%d",
            source_id,
            len(stored.variable_names),
            stored.row_count,
        )
        return stored

    def remove(self, source_id: str) -> bool:
        """Drop a dataset with all its configs, index entries and selections.

        Returns True if the dataset existed.
        """
        with self._lock:
            state = self._state
            if source_id not in state.datasets:
                return False
            keys = {
                key
                for key, ref in state.key_index.items()
                if ref.source_id == source_id
            }

            del state.datasets[source_id]
            for key in keys:
                state.key_index.pop(key, None)
                state.variable_configs.pop(key, None)
            state.selected_keys = [k for k in state.selected_keys if k not in keys]

        logger.info("logkit_tabular | removed | source_id=%s", source_id)
        return True

    def clear(self) -> None:
        """Reset the whole session, including the color cursor."""
        with self._lock:
            self._state = SessionState()
        logger.info("logkit_tabular | session cleared")

    # ------------------------------------------------------------------
    # Selection and display configuration
    # ------------------------------------------------------------------

    def set_enabled(self, key: str, enabled: bool) -> None:
        """Enable or disable one variable, keeping ``selected_keys`` in sync.

        Raises:
            KeyError: If *key* has no variable config.
        """
        with self._lock:
            self._set_enabled_locked(key, enabled)

    def set_all_enabled(self, source_id: str, enabled: bool) -> None:
        """Enable or disable every variable of one dataset, in column order."""
        with self._lock:
            for key in self.keys_for(source_id):
                if key in self._state.variable_configs:
                    self._set_enabled_locked(key, enabled)

    def update_config(self, key: str, **fields: object) -> VariableConfig:
        """Update display fields (label, color, y range, axis group) of *key*.

        ``enabled`` is routed through :meth:`set_enabled` semantics so the
        selection order stays consistent.

        Raises:
            KeyError: If *key* has no variable config.
        """
        with self._lock:
            enabled = fields.pop("enabled", None)
            current = self._state.variable_configs[key]
            updated = VariableConfig.model_validate(
                {**current.model_dump(), **fields}
            )
            self._state.variable_configs[key] = updated
            if enabled is not None:
                self._set_enabled_locked(key, bool(enabled))
            return self._state.variable_configs[key]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _unique_source_id(self, base: str) -> str:
        if base not in self._state.datasets:
            return base
        suffix = 2
        while f"{base}_{suffix}" in self._state.datasets:
            suffix += 1
        return f"{base}_{suffix}"

    def _set_enabled_locked(self, key: str, enabled: bool) -> None:
        state = self._state
        config = state.variable_configs[key]
        state.variable_configs[key] = config.model_copy(update={"enabled": enabled})
        if enabled and key not in state.selected_keys:
            state.selected_keys.append(key)
        elif not enabled and key in state.selected_keys:
            state.selected_keys.remove(key)
