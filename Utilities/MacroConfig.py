import ast
import json
from collections import namedtuple

"""
MacroConfig

Immutable per-script settings.

Each macro declares a DEFAULTS dict and a namedtuple type built from it.
Values are resolved once at startup in this order: defaults, JSON saved in
the character's persistent variable, explicit overrides from the script.
"""


def config_type(name, defaults):
    # namedtuple whose fields follow the defaults dict order.
    return namedtuple(name, list(defaults.keys()))


def _coerce(value, default):
    # Convert a raw value to the type of its default; raises on bad input.
    if isinstance(default, bool):
        if isinstance(value, str):
            v = value.strip().lower()
            if v in ("1", "true", "yes", "on"):
                return True
            if v in ("0", "false", "no", "off"):
                return False
            raise ValueError(f"not a boolean: {value!r}")
        return bool(value)
    if isinstance(default, int):
        if isinstance(value, str):
            return int(value.strip(), 0)
        return int(value)
    if isinstance(default, float):
        return float(value)
    if isinstance(default, (list, tuple)):
        if isinstance(value, str):
            value = [v for v in value.replace(";", ",").split(",") if v.strip()]
        sample = default[0] if default else None
        items = [_coerce(v, sample) if sample is not None else v for v in value]
        return tuple(items)
    if isinstance(default, str):
        return str(value)
    return value


def _parse_saved(raw):
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except Exception:
        data = ast.literal_eval(raw)
    if not isinstance(data, dict):
        raise ValueError("saved config is not a mapping")
    return data


def read_saved(api, data_key, log=None):
    # Saved overrides for this character; {} when absent or unreadable.
    if not data_key:
        return {}
    try:
        raw = api.GetPersistentVar(data_key, "", api.PersistentVar.Char)
    except Exception:
        raw = ""
    try:
        return _parse_saved(raw)
    except Exception:
        if log:
            log.warn(f"Ignoring unreadable saved settings under '{data_key}'.", phase="CONFIG")
        return {}


def merge_values(defaults, *sources, log=None):
    """Merge override mappings onto defaults, keeping each default's type.

    Args:
        defaults: Ordered mapping of setting name to default value.
        *sources: Override mappings applied left to right.
        log: Optional MacroLog receiving [CONFIG] warnings.

    Returns:
        dict: One value per default key.
    """
    values = dict(defaults)
    for source in sources:
        for key, raw in (source or {}).items():
            if key not in defaults:
                if log:
                    log.warn(f"Unknown setting '{key}' ignored.", phase="CONFIG")
                continue
            try:
                values[key] = _coerce(raw, defaults[key])
            except Exception:
                if log:
                    log.warn(f"Bad value for '{key}': {raw!r}; using {defaults[key]!r}.", phase="CONFIG")
    for key, value in values.items():
        if isinstance(value, list):
            values[key] = tuple(value)
    return values


def load_config(api, data_key, cfg_type, defaults, overrides=None, log=None):
    # Build the immutable config record for one run.
    saved = read_saved(api, data_key, log)
    values = merge_values(defaults, saved, overrides, log=log)
    return cfg_type(**values)


def save_config(api, data_key, config):
    data = {}
    for key, value in config._asdict().items():
        data[key] = list(value) if isinstance(value, tuple) else value
    api.SavePersistentVar(data_key, json.dumps(data), api.PersistentVar.Char)


def ms(value):
    # Millisecond settings to API.Pause seconds.
    return float(value) / 1000.0
