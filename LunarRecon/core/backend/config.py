import os
import yaml
import argparse
from pathlib import Path

DEFAULT_CONFIG_PATH = Path(os.getenv("LUNAR_RECON_CONFIG", "lunar_recon_config.yaml"))

DEFAULTS = {
    "device": "cpu",
    "dtype": "float32",
    "seed": 997,
    "verbose": True,
}

def load_yaml_config(path: str = None, verbose: bool = True) -> dict:
    """Load configuration from a YAML file."""
    cfg_path = Path(path or os.getenv("LUNAR_RECON_CONFIG", DEFAULT_CONFIG_PATH))
    if not cfg_path.exists():
        if verbose:
            print(f"[LunarRecon] No config found at {cfg_path}. Using defaults.")
        return {}
    with open(cfg_path, "r") as f:
        return yaml.safe_load(f) or {}

def parse_cli_args(argv=None) -> dict:
    """Parse CLI overrides (used for runtime config tweaking)."""
    parser = argparse.ArgumentParser(description="LunarRecon Config Override", add_help=False, allow_abbrev=False)

    parser.add_argument("--config", type=str, help="Path to YAML config file")
    parser.add_argument("--device", type=str, choices=["cpu", "gpu"], help="Device to use")
    parser.add_argument("--dtype", type=str, choices=["float16", "float32", "float64"], help="Floating point precision")
    parser.add_argument("--seed", type=int, help="Random seed")
    # Bare flag: host programs (pytest, training scripts) pass `--verbose` too.
    # Silencing is done through the YAML `verbose` key.
    parser.add_argument("--verbose", action="store_true", default=None, help="Print backend messages")

    args, _ = parser.parse_known_args(argv)

    cli_config = {}
    for key, value in vars(args).items():
        if value is not None:
            cli_config[key] = value

    return cli_config

def merge_configs(base: dict, override: dict) -> dict:
    """Merge CLI overrides into YAML base config (CLI wins)."""
    final = base.copy()
    final.update(override)
    return final

def load_config(argv=None) -> dict:
    """Main config loader: defaults + YAML + CLI overrides."""
    cli = parse_cli_args(argv)
    yaml_cfg = load_yaml_config(cli.get("config"), verbose=cli.get("verbose", True))
    return merge_configs(merge_configs(DEFAULTS, yaml_cfg), cli)

# === The global CONFIG dict you import elsewhere ===
CONFIG = load_config()
