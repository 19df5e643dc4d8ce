"""CLI commands for inspecting and saving persisted settings."""

from __future__ import annotations

import scriptconfig as scfg

from ..store import dump_toml, save, settings_path
from ._common import _load_target_cfg, _settings_path, _TargetCommand


class ConfigShowCLI(_TargetCommand):
    """Print the effective settings as TOML."""

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        cfg = _load_target_cfg(args)
        print(f'# {_settings_path(args.config) or settings_path()}')
        print(dump_toml(cfg), end='')
        return 0


class ConfigSaveCLI(_TargetCommand):
    """Save the effective settings, including any overrides given here."""

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        cfg = _load_target_cfg(args)
        path = save(cfg, _settings_path(args.config))
        print(f'saved to {path}')
        return 0


class ConfigModalCLI(scfg.ModalCLI):
    """Inspect or save persisted settings."""

    show = ConfigShowCLI
    save = ConfigSaveCLI
