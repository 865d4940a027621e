import os

_REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def get_data_dir():
    # An explicit directory wins so deployments can keep data outside the checkout.
    base = os.environ.get("CONTENTVAULT_DATA_DIR") or os.path.join(_REPO_ROOT, "data")
    os.makedirs(base, exist_ok=True)
    return base


def get_db_path():
    return os.path.join(get_data_dir(), "content.db")


def get_static_dir():
    return os.environ.get("CONTENTVAULT_STATIC_DIR") or os.path.join(_REPO_ROOT, "public")
