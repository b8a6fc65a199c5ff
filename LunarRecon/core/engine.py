import json
import importlib

import numpy as np

import LunarRecon.core.backend.backend as backend

ARCHIVE_VERSION = 1


def serialize_value(val):
    """Convert Python/numpy objects into JSON-safe formats."""
    if isinstance(val, (int, float, str, bool)) or val is None:
        return val
    if isinstance(val, np.generic):  # e.g. np.float32
        return val.item()
    if isinstance(val, (list, tuple)):
        return [serialize_value(v) for v in val]
    if isinstance(val, dict):
        return {k: serialize_value(v) for k, v in val.items()}
    if hasattr(val, "tolist"):  # numpy / cupy arrays
        return val.tolist()
    if hasattr(val, "get_config"):
        return val.get_config()
    if callable(val):
        return {
            "__callable__": True,
            "module": val.__module__,
            "name": val.__name__
        }
    # fallback: stringify (last resort)
    return str(val)


def deserialize_value(val):
    """Convert JSON-safe formats back to Python objects."""
    if isinstance(val, dict) and val.get("__callable__"):
        module = importlib.import_module(val["module"])
        return getattr(module, val["name"])
    if is_object_config(val):
        return object_from_config(val)
    return val


def is_object_config(val) -> bool:
    return isinstance(val, dict) and "module" in val and "class" in val


def object_from_config(config, **kwargs):
    """
    Create an object from a config dictionary.

    Args:
        config (dict): Must have keys "module", "class" and "params".

    Returns:
        object: Initialized object.
    """
    if config is None:
        return None

    # Import class
    module = importlib.import_module(config["module"])
    klass = getattr(module, config["class"])

    if hasattr(klass, "from_config"):
        return klass.from_config(config, **kwargs)

    init_args = {k: deserialize_value(v) for k, v in config.get("params", {}).items()}
    init_args.update(kwargs)
    return klass(**init_args)


def save(obj, filepath):
    """
    Write `obj`'s configuration to a versioned JSON archive.

    Args:
        obj: Anything exposing `get_config()` (losses, distributions).
        filepath (str or Path): Destination file.
    """
    archive = {
        "version": ARCHIVE_VERSION,
        "config": obj.get_config(),
    }
    with open(filepath, "w") as f:
        json.dump(archive, f, indent=2)
    if backend.VERBOSE:
        print(f"[LunarRecon] Saved {obj.__class__.__name__} to {filepath}")


def load(filepath):
    """
    Rebuild an object from an archive written by `save`.

    Raises:
        ValueError: if the archive is malformed or was written by a newer format.
    """
    with open(filepath, "r") as f:
        archive = json.load(f)

    version = archive.get("version")
    if not isinstance(version, int):
        raise ValueError(f"Archive {filepath} has no integer 'version' tag")
    if version > ARCHIVE_VERSION:
        raise ValueError(
            f"Archive version {version} is newer than supported version {ARCHIVE_VERSION}"
        )
    if not is_object_config(archive.get("config")):
        raise ValueError(f"Archive {filepath} has no object config")

    return object_from_config(archive["config"])
