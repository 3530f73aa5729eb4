import functools
import getpass
import typing as t
from pathlib import Path

import pydantic as p
import yaml
from ansible.parsing.vault import VaultLib, VaultSecret
from keyctl import Key as keyctl
from keyctl import KeyNotExistError
from pydantic_settings import PydanticBaseSettingsSource
from pydantic_settings.sources import SettingsError

import registrar.lib.util as util
from registrar.model import DeploymentEnvironment

# fields carried in the init kwargs that no file source may supply
BootKeys = frozenset({"env", "root", "override"})


class CurrentState(t.TypedDict, total=False):
    root: t.Required[p.AnyUrl]
    env: t.Required[DeploymentEnvironment]


class SettingsCurrentState(CurrentState, total=False):
    override: t.Required[tuple[str, ...]]


def env_paths(root: p.AnyUrl, env: DeploymentEnvironment) -> list[Path]:
    """The config root, followed by its `env.d/<env>` subdirectory unless running locally"""
    assert root.scheme == "file" and root.path is not None, "root is not a legible location of YAML files"
    paths = [Path(root.path)]
    if env is not DeploymentEnvironment.Local:
        paths.append(Path(root.path) / "env.d" / env.value)
    return paths


class SettingsSource(PydanticBaseSettingsSource):
    def __call__(self) -> dict[str, t.Any]:
        data: dict[str, t.Any] = {}

        for field_name, field in self.settings_cls.model_fields.items():
            try:
                field_value, field_key, value_is_complex = self.get_field_value(field, field_name)
                field_value = self.prepare_field_value(field_name, field, field_value, value_is_complex)
            except KeyError:
                continue
            except ValueError as e:
                raise SettingsError(f"error parsing value for field {field_name!r} from source {self!r}") from e
            except Exception as e:
                raise SettingsError(f"error getting value for field {field_name!r} from source {self!r}") from e

            data[field_key] = field_value
        return data

    def prepare_field_value(
        self, field_name: str, field: p.fields.FieldInfo, value: t.Any, value_is_complex: bool
    ) -> t.Any:
        return value


class OverrideSettingsSource(SettingsSource):
    """Applies `-o section.key=value` overrides on top of the loaded settings.

    Values are parsed as YAML, so `-o transcript.precision=3` yields an int.
    Must precede the YAML source, since earlier sources take precedence.
    """

    @functools.cached_property
    def parsed_options(self) -> dict[str, t.Any]:
        current_state = t.cast(SettingsCurrentState, self.current_state)
        od: dict[str, t.Any] = {}
        for o in current_state["override"]:
            k, v = [s.strip() for s in o.split("=", 1)]

            target = od
            *path, key = k.split(".")
            for part in path:
                target = target.setdefault(part, {})
            target[key] = yaml.safe_load(v)
        return od

    def get_field_value(self, field: p.fields.FieldInfo, field_name: str) -> tuple[t.Any, str, bool]:
        # only the overridden keys; pydantic-settings merges them over what later sources load
        if field_name in BootKeys or field_name not in self.parsed_options:
            raise KeyError(field_name)
        val = self.parsed_options[field_name]
        return val, field_name, isinstance(val, dict)


class YAMLCascadingSettingsSource(SettingsSource):
    """Reads `<field>.yaml` from the config root and from `env.d/<env>/`

    The environment-specific file, when present, is merged over the root one.
    """

    @functools.cached_property
    def load_paths(self) -> list[Path]:
        current_state = t.cast(SettingsCurrentState, self.current_state)
        return env_paths(current_state["root"], current_state["env"])

    def get_field_value(self, field: p.fields.FieldInfo, field_name: str) -> tuple[t.Any, str, bool]:
        yamls: list[str] = []
        for path in self.load_paths:
            fn = path / f"{field_name}.yaml"
            if fn.exists():
                yamls.append(fn.read_text(encoding="utf8"))
        if not yamls:
            raise KeyError(field_name)
        return yamls, field_name, True

    def prepare_field_value(
        self, field_name: str, field: p.fields.FieldInfo, value: t.Any, value_is_complex: bool
    ) -> t.Any:
        if not value_is_complex:
            return super().prepare_field_value(field_name, field, value, value_is_complex)

        if not isinstance(value, list):
            raise ValueError(field_name)
        merged: dict[t.Any, t.Any] = {}
        for doc in t.cast(list[str], value):
            loaded = yaml.safe_load(doc)
            if not isinstance(loaded, dict):
                # scalar or list sections are replaced wholesale by the most specific file
                return loaded
            merged = util.deep_update(merged, t.cast(dict[t.Any, t.Any], loaded))
        return merged


class AnsibleVaultSecretsSource(SettingsSource):
    """Decrypts `secrets.vault.yaml` for the current environment.

    The vault password is cached in the kernel keyring once it has unlocked
    the vault, so only the first invocation in a login session prompts.
    """

    @functools.cached_property
    def load_path(self) -> Path:
        current_state = t.cast(CurrentState, self.current_state)
        return env_paths(current_state["root"], current_state["env"])[-1]

    @functools.cached_property
    def secrets(self) -> dict[str, t.Any]:
        current_state = t.cast(CurrentState, self.current_state)
        env = current_state["env"]
        fn = "secrets.vault.yaml"
        vp = self.load_path / fn

        if not vp.exists():
            return {}

        key_name = f"{env.value}:{fn}"
        try:
            store_key: bool = False
            key = keyctl.search(key_name).data
        except KeyNotExistError:
            key = getpass.getpass(f"provide vault key ({key_name}): ")
            store_key = True

        vault = VaultLib(secrets=[(None, VaultSecret(key.encode()))])
        with vp.open() as f:
            content = vault.decrypt(f.read())
        if store_key:
            keyctl.add(key_name, key)
        return yaml.safe_load(content) or {}

    def get_field_value(self, field: p.fields.FieldInfo, field_name: str) -> tuple[t.Any, str, bool]:
        # checked before touching self.secrets, which itself needs root from the init kwargs
        if field_name in BootKeys or field_name not in self.secrets:
            raise KeyError(field_name)
        val = self.secrets[field_name]
        return val, field_name, isinstance(val, dict)
