import json
import os
import tempfile
from collections import Counter

from singer import write_record
import singer

from pipedrive_api.client import ClientOptions, DEFAULT_USER_AGENT
from pipedrive_api.entities import ENTITIES

logger = singer.get_logger()

DEFAULT_ENTITIES = ["call_logs", "webhooks"]
PROGRESS_LOG_FREQUENCY = 2000


def write_config(config, config_path):
    # replace, never truncate: the file holds the only copy of the refresh token
    config_dir = os.path.dirname(os.path.abspath(config_path))
    fd, tmp_path = tempfile.mkstemp(dir=config_dir, prefix=".config-", suffix=".json")
    try:
        with os.fdopen(fd, "w") as tmp_file:
            json.dump(config, tmp_file, indent=2)
        os.replace(tmp_path, config_path)
    except BaseException:
        os.unlink(tmp_path)
        raise


def persist_tokens_callback(config, config_path=None):
    """Build an authentication callback that stores refreshed tokens.

    The tokens land in ``config`` and, when a path is given, are written
    back to the config file so the next run starts from them.
    """

    def inner_persist_tokens(creds):
        config["access_token"] = creds.get("access_token", config.get("access_token"))
        config["refresh_token"] = creds.get("refresh_token", config.get("refresh_token"))
        if config_path:
            write_config(config, config_path)
            logger.info(f"wrote refreshed tokens to {config_path}")

    return inner_persist_tokens


def build_client(entity_cls, config, config_path=None):
    return entity_cls(
        client_id=config["client_id"],
        client_secret=config["client_secret"],
        access_token=config.get("access_token"),
        refresh_token=config["refresh_token"],
        domain_url=config["domain_url"],
        authentication_callback=persist_tokens_callback(config, config_path),
        client_options=ClientOptions(
            user_agent=config.get("user_agent") or DEFAULT_USER_AGENT,
            debug=bool(config.get("debug")),
        ),
    )


def custom_write_record(stream_name, record, counter):
    write_record(stream_name, record)
    counter.update([stream_name])
    record_count = counter.get(stream_name)
    if record_count % PROGRESS_LOG_FREQUENCY == 0:
        logger.info(
            f"PROGRESS: stream_name: '{stream_name}' records produced yet: {record_count}"
        )


def sync_entity(client, counter):
    stream_name = client.entity_name
    for record in client.each():
        custom_write_record(stream_name, record, counter)


def sync(config, config_path=None):
    stream_names = config.get("entities") or DEFAULT_ENTITIES
    unknown = [name for name in stream_names if name not in ENTITIES]
    if unknown:
        raise ValueError(f"unknown entities in config: {unknown}")

    counter = Counter()
    stream_name = None
    try:
        for stream_name in stream_names:
            logger.info(f"currently syncing {stream_name}")
            # clients share the config dict, so tokens refreshed by one reach the next
            client = build_client(ENTITIES[stream_name], config, config_path)
            sync_entity(client, counter)
    except Exception:
        logger.exception(f"got error during processing of stream: '{stream_name}'")
        raise
    finally:
        logger.info(
            f"COMPLETE STATS: stream_name_records_produced: {counter.most_common()}"
        )
    return counter
