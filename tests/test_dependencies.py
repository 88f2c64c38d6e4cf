"""Tests for foreign-key table ordering."""

from db_voyager.scripting.dependencies import build_dependency_graph, topological_sort
from db_voyager.scripting.models import ObjectCategory
from fakes import make_object


def _fk(name, parent, references):
    return make_object(ObjectCategory.FOREIGN_KEYS, name, parent=parent, references=references)


class TestBuildDependencyGraph:
    def test_maps_child_to_parents(self):
        graph = build_dependency_graph([
            _fk("fk1", "public.books", "public.authors"),
            _fk("fk2", "public.chapters", "public.books"),
            _fk("fk3", "public.books", "public.publishers"),
        ])
        assert graph == {
            "public.books": {"public.authors", "public.publishers"},
            "public.chapters": {"public.books"},
        }

    def test_self_reference_ignored(self):
        graph = build_dependency_graph([_fk("fk", "public.employees", "public.employees")])
        assert graph == {"public.employees": set()}


class TestTopologicalSort:
    def test_parents_before_children(self):
        deps = {"chapters": {"books"}, "books": {"authors"}}
        order = topological_sort(deps, ["chapters", "books", "authors"])
        assert order.index("authors") < order.index("books") < order.index("chapters")

    def test_independent_tables_keep_input_order(self):
        assert topological_sort({}, ["b", "A", "c"]) == ["b", "A", "c"]

    def test_dependencies_outside_table_list_ignored(self):
        assert topological_sort({"orders": {"customers"}}, ["orders"]) == ["orders"]

    def test_cycle_still_lists_every_table(self):
        deps = {"a": {"b"}, "b": {"a"}}
        order = topological_sort(deps, ["a", "b"])
        assert sorted(order) == ["a", "b"]
