import typing as t

from pydantic_settings import BaseSettings as PydanticBaseSettings

from registrar.model import BaseModel


# settings inherit serialize_by_alias from BaseModel; model_config is merged across bases
class BaseSettings(PydanticBaseSettings, BaseModel):  # pyright: ignore [reportIncompatibleVariableOverride]
    def __init__(self, cf: dict[str, t.Any] | None = None, **kwargs: t.Any):
        # specifically allow initialization with a dict
        if cf is not None:
            kwargs = {**cf, **kwargs}
        super().__init__(**kwargs)


class BaseSecrets(BaseSettings): ...
