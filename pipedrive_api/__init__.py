#!/usr/bin/env python3
import singer

from pipedrive_api.client import (
    Base,
    ClientOptions,
    Envelope,
    __version__,
    entity_name,
)
from pipedrive_api.entities import (
    Activity,
    CallLog,
    Deal,
    Note,
    Organization,
    Person,
    Webhook,
)
from pipedrive_api.exceptions import APIBadResponse, PipedriveError
from pipedrive_api.sync import sync


REQUIRED_CONFIG_KEYS = [
    "client_id",
    "client_secret",
    "refresh_token",
    "domain_url",
]


def main():
    args = singer.utils.parse_args(REQUIRED_CONFIG_KEYS)

    sync(config=args.config, config_path=args.config_path)


if __name__ == "__main__":
    main()
