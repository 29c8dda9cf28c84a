from __future__ import annotations

import os

import pytest

from src.livecast.config import StreamAccountConfig

# Importing src.livecast.main builds an app from the environment; keep it empty.
for _name in ("STREAM_ACCOUNT_ID", "STREAM_API_TOKEN", "CUSTOMER_SUBDOMAIN"):
    os.environ.pop(_name, None)


@pytest.fixture
def account() -> StreamAccountConfig:
    return StreamAccountConfig(
        account_id="acc-1",
        api_token="token-1",
        api_base="https://api.example.test/client/v4",
        customer_subdomain="cust.example",
    )
