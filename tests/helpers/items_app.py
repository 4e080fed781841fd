"""Small item service wired through the dispatcher.

Used by the dispatcher, ASGI and CLI tests, and loadable as a CLI target::

    dispatchkit routes tests.helpers.items_app:create_dispatcher
"""

from pydantic import BaseModel

from dispatchkit import (
    ConstructorSpec,
    Dispatcher,
    HandlerDescriptor,
    ParamSource,
    ParamSpec,
    ResponseEntity,
    build_dispatcher,
)
from dispatchkit.config import Settings
from dispatchkit.services import ErrorTypeResolver


class Item(BaseModel):
    id: int
    name: str
    kind: str = "generic"


class NewItem(BaseModel):
    name: str
    kind: str = "generic"


class ItemNotFound(Exception):
    def __init__(self, item_id: int) -> None:
        super().__init__(f"Item {item_id} not found")
        self.item_id = item_id


class ItemStore:
    """In-memory item storage shared by every handler."""

    def __init__(self) -> None:
        self._items: dict[int, Item] = {}
        self._next_id = 1

    def add(self, name: str, kind: str = "generic") -> Item:
        item = Item(id=self._next_id, name=name, kind=kind)
        self._items[item.id] = item
        self._next_id += 1
        return item

    def get(self, item_id: int) -> Item:
        try:
            return self._items[item_id]
        except KeyError:
            raise ItemNotFound(item_id) from None

    def remove(self, item_id: int) -> None:
        self.get(item_id)
        del self._items[item_id]

    def all(self) -> list[Item]:
        return list(self._items.values())


class ListItems:
    def __init__(self, store: ItemStore) -> None:
        self.store = store

    def invoke(self, kind: str | None, limit: int) -> list[Item]:
        items = self.store.all()
        if kind is not None:
            items = [item for item in items if item.kind == kind]
        return items[:limit]


class RecentItems:
    def __init__(self, store: ItemStore) -> None:
        self.store = store

    def invoke(self) -> list[Item]:
        return list(reversed(self.store.all()))[:3]


class SearchItems:
    def __init__(self, store: ItemStore) -> None:
        self.store = store

    def invoke(self, kind: str) -> list[Item]:
        return [item for item in self.store.all() if item.kind == kind]


class GetItem:
    def __init__(self, store: ItemStore) -> None:
        self.store = store

    def invoke(self, item_id: int) -> Item:
        return self.store.get(item_id)


class CreateItem:
    def __init__(self, store: ItemStore) -> None:
        self.store = store

    async def invoke(self, new_item: NewItem) -> ResponseEntity:
        item = self.store.add(new_item.name, new_item.kind)
        return ResponseEntity(
            body=item, status_code=201, headers={"location": f"/items/{item.id}"}
        )


class DeleteItem:
    def __init__(self, store: ItemStore) -> None:
        self.store = store

    def invoke(self, item_id: int) -> ResponseEntity:
        self.store.remove(item_id)
        return ResponseEntity(status_code=204)


class Files:
    def invoke(self, rest: str, trace_id: str | None) -> dict[str, str | None]:
        return {"path": rest, "trace_id": trace_id}


class Health:
    def invoke(self) -> str:
        return "ok"


class Broken:
    def invoke(self) -> None:
        raise RuntimeError("database password is hunter2")


ROUTES = [
    HandlerDescriptor(
        "GET",
        "/items",
        ListItems,
        params=(
            ParamSpec("kind", ParamSource.QUERY, str | None, required=False),
            ParamSpec("limit", ParamSource.QUERY, int, required=False, default=10),
        ),
    ),
    HandlerDescriptor("GET", "/items/recent", RecentItems),
    HandlerDescriptor(
        "GET",
        "/items/search",
        SearchItems,
        params=(ParamSpec("type", ParamSource.QUERY, str),),
    ),
    HandlerDescriptor(
        "GET",
        "/items/{item_id}",
        GetItem,
        params=(ParamSpec("item_id", ParamSource.PATH, int),),
    ),
    HandlerDescriptor(
        "POST",
        "/items",
        CreateItem,
        params=(ParamSpec("new_item", ParamSource.BODY, NewItem),),
    ),
    HandlerDescriptor(
        "DELETE",
        "/items/{item_id}",
        DeleteItem,
        params=(ParamSpec("item_id", ParamSource.PATH, int),),
    ),
    HandlerDescriptor(
        "GET",
        "/files/{rest:path}",
        Files,
        params=(
            ParamSpec("rest", ParamSource.PATH),
            ParamSpec(
                "trace_id",
                ParamSource.HEADER,
                str | None,
                required=False,
                alias="X-Trace-Id",
            ),
        ),
    ),
    HandlerDescriptor("GET", "/health", Health, name="health"),
    HandlerDescriptor("GET", "/broken", Broken),
]

HANDLERS = [ListItems, RecentItems, SearchItems, GetItem, CreateItem, DeleteItem]


def create_dispatcher(
    store: ItemStore | None = None, settings: Settings | None = None
) -> Dispatcher:
    components = [ConstructorSpec(handler, (ItemStore,)) for handler in HANDLERS]
    components += [ConstructorSpec(Files), ConstructorSpec(Health)]
    components.append(ConstructorSpec(Broken))

    instances: dict[object, object] = {}
    if store is None:
        components.append(ConstructorSpec(ItemStore))
    else:
        instances[ItemStore] = store

    return build_dispatcher(
        ROUTES,
        components,
        instances=instances,
        resolvers=[ErrorTypeResolver(ItemNotFound, 404, "item_not_found")],
        settings=settings,
    )
