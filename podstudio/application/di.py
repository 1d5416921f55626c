from dishka import AsyncContainer, Provider, from_context, make_async_container

from podstudio.config import Config
from podstudio.domain.auth.util.di import AuthProvider
from podstudio.infrastructure.auth import AuthInfraProvider
from podstudio.infrastructure.persistence import PersistenceProvider
from podstudio.util.di.scope import Scope


class ConfigProvider(Provider):
    config = from_context(provides=Config, scope=Scope.APP)


def create_container(config: Config | None = None) -> AsyncContainer:
    if config is None:
        # Pydantic Settings populates from env vars at runtime
        config = Config()  # type: ignore[call-arg]

    return make_async_container(
        ConfigProvider(),
        PersistenceProvider(),
        AuthProvider(),
        AuthInfraProvider(),
        context={Config: config},
        scopes=Scope,  # type: ignore[arg-type]  # Custom scope class
    )
