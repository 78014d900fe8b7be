import os
import unittest

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("S3_ENDPOINT", "http://localhost:9000")
os.environ.setdefault("S3_ACCESS_KEY", "test")
os.environ.setdefault("S3_SECRET_KEY", "test")
os.environ.setdefault("S3_BUCKET", "test")

from app.services.list_params import parse_bracket_params, parse_list_params


class BracketParamsTests(unittest.TestCase):
    def test_nested_keys_become_mappings(self):
        params = parse_bracket_params(
            [
                ("where[status]", "new"),
                ("where[category_id]", "1,2"),
                ("order[by]", "name"),
                ("order[dir]", "desc"),
                ("take", "10"),
            ]
        )
        self.assertEqual(params["where"], {"status": "new", "category_id": "1,2"})
        self.assertEqual(params["order"], {"by": "name", "dir": "desc"})
        self.assertEqual(params["take"], "10")

    def test_empty_brackets_append_to_list(self):
        params = parse_bracket_params([("with[]", "roles"), ("with[]", "roles.count")])
        self.assertEqual(params["with"], ["roles", "roles.count"])

    def test_repeated_plain_key_keeps_last_value(self):
        params = parse_bracket_params([("page", "1"), ("page", "3")])
        self.assertEqual(params["page"], "3")


class ParseListParamsTests(unittest.TestCase):
    def test_defaults(self):
        spec = parse_list_params({})
        self.assertEqual(spec.select, ["*"])
        self.assertEqual(spec.take, 25)
        self.assertEqual(spec.page, 1)
        self.assertEqual(spec.skip, 0)
        self.assertEqual(spec.order.fields, ["id"])
        self.assertEqual(spec.order.direction, "asc")
        self.assertEqual(spec.with_, [])
        self.assertIsNone(spec.search)

    def test_unrecognized_keys_are_ignored(self):
        spec = parse_list_params({"foo": "bar", "limit": "5"})
        self.assertEqual(spec.take, 25)

    def test_skip_is_derived_from_page_and_take(self):
        self.assertEqual(parse_list_params({"page": "1", "take": "25"}).skip, 0)
        self.assertEqual(parse_list_params({"page": "3", "take": "10"}).skip, 20)

    def test_skip_is_zero_when_take_is_unlimited(self):
        spec = parse_list_params({"page": "4", "take": "0"})
        self.assertEqual(spec.take, 0)
        self.assertEqual(spec.page, 4)
        self.assertEqual(spec.skip, 0)

    def test_non_numeric_page_falls_back_to_first_page(self):
        self.assertEqual(parse_list_params({"page": "abc"}).page, 1)
        self.assertEqual(parse_list_params({"page": ""}).page, 1)
        self.assertEqual(parse_list_params({"page": "0"}).page, 1)

    def test_non_numeric_take_uses_default(self):
        self.assertEqual(parse_list_params({"take": "many"}).take, 25)

    def test_order_by_list_keeps_order_and_duplicates(self):
        spec = parse_list_params({"order": {"by": "name,id,name"}})
        self.assertEqual(spec.order.fields, ["name", "id", "name"])

    def test_order_direction_is_case_sensitive(self):
        self.assertEqual(parse_list_params({"order": {"dir": "desc"}}).order.direction, "desc")
        self.assertEqual(parse_list_params({"order": {"dir": "DESC"}}).order.direction, "asc")
        self.assertEqual(parse_list_params({"order": {"dir": "sideways"}}).order.direction, "asc")

    def test_filter_maps_are_normalized(self):
        spec = parse_list_params(
            {
                "where": {"status": "new", "category_id": ["1", "2"]},
                "where_not": "not-a-map",
                "or_where": {"name": None},
            }
        )
        self.assertEqual(spec.where, {"status": "new", "category_id": "1,2"})
        self.assertEqual(spec.where_not, {})
        self.assertEqual(spec.or_where, {"name": None})

    def test_select_and_with_are_split(self):
        spec = parse_list_params({"select": "id,name", "with": "roles", "search": "ann"})
        self.assertEqual(spec.select, ["id", "name"])
        self.assertEqual(spec.with_, ["roles"])
        self.assertEqual(spec.search, "ann")

    def test_query_string_round_trip_through_brackets(self):
        params = parse_bracket_params([("order[by]", "name,id"), ("order[dir]", "desc"), ("take", "5"), ("page", "2")])
        spec = parse_list_params(params)
        self.assertEqual(spec.order.fields, ["name", "id"])
        self.assertEqual(spec.order.direction, "desc")
        self.assertEqual(spec.skip, 5)


if __name__ == "__main__":
    unittest.main()
