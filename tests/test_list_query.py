import os
import unittest

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("S3_ENDPOINT", "http://localhost:9000")
os.environ.setdefault("S3_ACCESS_KEY", "test")
os.environ.setdefault("S3_SECRET_KEY", "test")
os.environ.setdefault("S3_BUCKET", "test")

from sqlalchemy import Integer, String, create_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column

from app.core.errors import NotFoundError
from app.schemas.listing import OrderSpec, QuerySpec
from app.services.list_query import ResourceDefinition, destroy_resource, list_resource, show_resource


class _Base(DeclarativeBase):
    pass


class _ListItem(_Base):
    __tablename__ = "_list_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(50))
    status: Mapped[str] = mapped_column(String(20))
    rank: Mapped[int] = mapped_column(Integer)


ITEMS = ResourceDefinition(model=_ListItem)


class ListResourceTests(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine("sqlite+pysqlite:///:memory:")
        _Base.metadata.create_all(self.engine)
        with Session(self.engine) as session:
            session.add_all(
                [
                    _ListItem(id=1, name="Alpha", status="new", rank=2),
                    _ListItem(id=2, name="Beta", status="done", rank=1),
                    _ListItem(id=3, name="Gamma", status="new", rank=2),
                    _ListItem(id=4, name="Delta", status="new", rank=1),
                    _ListItem(id=5, name="Alphabet", status="archived", rank=3),
                ]
            )
            session.commit()

    def tearDown(self):
        self.engine.dispose()

    def _list(self, resource=ITEMS, **spec) -> dict:
        with Session(self.engine) as session:
            return list_resource(session, resource, QuerySpec(**spec))

    def test_default_listing_shape(self):
        result = self._list()
        self.assertEqual(set(result), {"collection", "page", "take", "total"})
        self.assertEqual(result["page"], 1)
        self.assertEqual(result["take"], 25)
        self.assertEqual(result["total"], 5)
        self.assertEqual([row["id"] for row in result["collection"]], [1, 2, 3, 4, 5])

    def test_total_counts_filtered_rows_not_page_size(self):
        result = self._list(where={"status": "new"}, take=2, page=2)
        self.assertEqual(result["total"], 3)
        self.assertEqual([row["id"] for row in result["collection"]], [4])

    def test_total_is_independent_of_window_and_relations(self):
        totals = {
            self._list(where={"status": "new"}, take=take, page=page, with_=with_)["total"]
            for take, page, with_ in [(25, 1, []), (1, 3, []), (0, 9, ["unknown"]), (2, 1, ["x.count"])]
        }
        self.assertEqual(totals, {3})

    def test_take_zero_returns_everything_regardless_of_page(self):
        result = self._list(take=0, page=4)
        self.assertEqual(len(result["collection"]), 5)
        self.assertEqual(result["page"], 4)

    def test_multiple_order_fields_share_direction(self):
        result = self._list(order=OrderSpec(fields=["rank", "id"], direction="desc"))
        self.assertEqual([row["id"] for row in result["collection"]], [5, 3, 1, 4, 2])

    def test_unknown_order_fields_are_skipped(self):
        result = self._list(order=OrderSpec(fields=["nope", "name"], direction="asc"))
        self.assertEqual(result["collection"][0]["name"], "Alpha")

    def test_default_search_matches_name_case_insensitively(self):
        result = self._list(search="ALPHA")
        self.assertEqual([row["id"] for row in result["collection"]], [1, 5])
        self.assertEqual(result["total"], 2)

    def test_custom_search_callback(self):
        resource = ResourceDefinition(model=_ListItem, search=lambda q, term: q.filter(_ListItem.status == term))
        result = self._list(resource, search="done")
        self.assertEqual([row["id"] for row in result["collection"]], [2])

    def test_select_restricts_fields(self):
        result = self._list(select=["id", "name"])
        self.assertEqual(set(result["collection"][0]), {"id", "name"})

    def test_transform_hook_is_applied_to_every_record(self):
        resource = ResourceDefinition(model=_ListItem, transform=lambda record: {**record, "label": record["name"].upper()})
        result = self._list(resource, take=2)
        self.assertEqual([row["label"] for row in result["collection"]], ["ALPHA", "BETA"])

    def test_base_query_scopes_listing(self):
        resource = ResourceDefinition(
            model=_ListItem,
            base_query=lambda db: db.query(_ListItem).filter(_ListItem.status != "archived"),
        )
        result = self._list(resource, or_where={"status": "archived"})
        self.assertEqual(result["total"], 0)


class ShowAndDestroyTests(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine("sqlite+pysqlite:///:memory:")
        _Base.metadata.create_all(self.engine)
        with Session(self.engine) as session:
            session.add(_ListItem(id=7, name="Seven", status="new", rank=1))
            session.commit()

    def tearDown(self):
        self.engine.dispose()

    def test_show_with_select(self):
        with Session(self.engine) as session:
            record = show_resource(session, ITEMS, 7, {"select": "id,status"})
        self.assertEqual(record, {"id": 7, "status": "new"})

    def test_show_missing_record_raises_not_found(self):
        with Session(self.engine) as session:
            with self.assertRaises(NotFoundError) as ctx:
                show_resource(session, ITEMS, 99, {})
        self.assertEqual(ctx.exception.status_code, 404)

    def test_destroy_removes_record(self):
        with Session(self.engine) as session:
            destroy_resource(session, ITEMS, 7)
        with Session(self.engine) as session:
            self.assertIsNone(session.get(_ListItem, 7))
            with self.assertRaises(NotFoundError):
                destroy_resource(session, ITEMS, 7)


if __name__ == "__main__":
    unittest.main()
