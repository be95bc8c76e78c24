"""Loading solver setups from YAML files or dicts."""

from dsgeswitch.io.load import load_setup

__all__ = ["load_setup"]
