import os

import environ

SECRETS_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "secrets.ini")
ENVIRONMENT = os.environ.get("ENVIRONMENT", default="testing")
ini_secrets = environ.secrets.INISecrets.from_path(SECRETS_PATH, ENVIRONMENT)


@environ.config(prefix="")
class AutorenderConfig:
    @environ.config(prefix="DISCORD")
    class Discord:
        owner_ids = environ.var(converter=set)
        default_prefix = environ.var(")")
        token = ini_secrets.secret(name="discord_token")

    discord = environ.group(Discord)

    @environ.config(prefix="AUTORENDER")
    class Autorender:
        connect_uri = environ.var("ws://127.0.0.1:8001/connect/bot")
        protocol = environ.var("autorender-v1")
        base_api = environ.var("http://127.0.0.1:8001")
        public_uri = environ.var("http://127.0.0.1:8001")
        bot_token = environ.var(
            name="AUTORENDER_BOT_TOKEN",
            default=ini_secrets.secret(name="autorender_bot_token"),
        )
        # Constant delay between reconnect attempts to the control-plane.
        retry_delay = environ.var(0.1, converter=float)
        # Optional "module:attribute" path of a demo codec used by /fixup.
        demo_codec = environ.var(None)

    autorender = environ.group(Autorender)

    @environ.config(prefix="REDIS")
    class Redis:
        port = environ.var(6379, converter=int)
        password = environ.var(
            name="REDIS_PASSWORD", default=ini_secrets.secret(name="redis_password")
        )
        host = environ.var(
            name="REDIS_HOST", default=ini_secrets.secret(name="redis_host")
        )

    redis = environ.group(Redis)


def _parse_owner_ids(value: str):
    return {int(x.strip()) for x in value.split(",") if x.strip()} if value else None


def _build_environ():
    env = {
        "DISCORD_OWNER_IDS": _parse_owner_ids(os.environ.get("DISCORD_OWNER_IDS", ""))
        or set(),
        "REDIS_PORT": int(os.environ.get("REDIS_PORT", 6379)),
    }
    for name in (
        "DISCORD_DEFAULT_PREFIX",
        "AUTORENDER_CONNECT_URI",
        "AUTORENDER_PROTOCOL",
        "AUTORENDER_BASE_API",
        "AUTORENDER_PUBLIC_URI",
        "AUTORENDER_BOT_TOKEN",
        "AUTORENDER_RETRY_DELAY",
        "AUTORENDER_DEMO_CODEC",
        "REDIS_PASSWORD",
        "REDIS_HOST",
    ):
        if name in os.environ:
            env[name] = os.environ[name]
    return env


cfg: AutorenderConfig = AutorenderConfig.from_environ(environ=_build_environ())
