"""CRUD mixins composed into the entity classes.

Each mixin maps one HTTP verb onto ``Base.make_api_call``; they carry no
state of their own.
"""
import json

import singer

logger = singer.get_logger()

PAGINATION_LIMIT = 100


class Utils:
    def follow_pagination(self, method, args, params):
        """Yield every ``data`` item across pages of ``method``.

        Starts at ``params["start"]`` (0 by default) and follows
        ``additional_data.pagination.next_start`` while Pipedrive reports
        more items in the collection.
        """
        params = dict(params)
        start = params.pop("start", 0)
        params.setdefault("limit", PAGINATION_LIMIT)
        res = None
        try:
            while True:
                res = getattr(self, method)(*args, start=start, **params)
                if not res or not res.get("success") or not res.get("data"):
                    break

                for item in res["data"]:
                    yield item

                pagination = (res.get("additional_data") or {}).get("pagination") or {}
                if not pagination.get("more_items_in_collection"):
                    break
                start = pagination.get("next_start")
        except Exception:
            logger.exception(
                f"got error during pagination of {self.entity_name}! response: {json.dumps(res)}"
            )
            raise


class Read:
    def find_by_id(self, id):
        return self.make_api_call("get", id)

    def chunk(self, **params):
        res = self.make_api_call("get", **params)
        if not res.success:
            return []
        return res

    def each(self, **params):
        return self.follow_pagination("chunk", [], params)

    def all(self, **params):
        return list(self.each(**params))


class Create:
    def create(self, **params):
        return self.make_api_call("post", **params)


class Update:
    def update(self, id, **params):
        return self.make_api_call("put", id, **params)


class Delete:
    def delete(self, id):
        return self.make_api_call("delete", id)

    def delete_all(self):
        return self.make_api_call("delete")
