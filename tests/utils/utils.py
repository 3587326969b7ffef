import base64
import random
import string


def random_lower_string() -> str:
    return "".join(random.choices(string.ascii_lowercase, k=32))


def api_key_token(name: str, secret: str) -> str:
    """Wire form of an api key: base64("<name>:<secret>")."""
    return base64.b64encode(f"{name}:{secret}".encode()).decode()
