"""
Tests for value resolvers.
"""

import pytest
from fieldmerge.resolver import CallableResolver, Resolver, ValueResolver


class TestValueResolver:
    """Test the table-backed resolver."""

    def test_default_is_empty_string(self):
        resolver = ValueResolver()
        assert resolver.resolve("Name") == ""

    def test_explicit_value(self):
        resolver = ValueResolver()
        resolver.set_value("Name", "Otto Müstermanß")
        assert resolver.resolve("Name") == "Otto Müstermanß"

    def test_set_values_merges(self):
        """set_values merges into the existing table."""
        resolver = ValueResolver()
        resolver.set_value("Address", "Example Street 123")
        resolver.set_values({"Name": "Otto Müstermanß"})
        assert resolver.resolve("Name") == "Otto Müstermanß"
        assert resolver.resolve("Address") == "Example Street 123"

    def test_later_values_win(self):
        resolver = ValueResolver()
        resolver.set_values({"Name": "A"})
        resolver.set_value("Name", "B")
        assert resolver.resolve("Name") == "B"
        resolver.set_values({"Name": "C"})
        assert resolver.resolve("Name") == "C"

    def test_default_fallback(self):
        resolver = ValueResolver({"Name": "Otto"})
        resolver.set_default_value("???")
        assert resolver.resolve("Address") == "???"
        assert resolver.resolve("Name") == "Otto"

    def test_unknown_identifier_resolves_to_default(self):
        """None stands for a reference to an undeclared identifier."""
        resolver = ValueResolver({"None": "literal"}, default="???")
        assert resolver.resolve(None) == "???"

    def test_empty_string_value_is_explicit(self):
        """An explicit empty value is not replaced by the default."""
        resolver = ValueResolver({"Name": ""}, default="???")
        assert resolver.resolve("Name") == ""

    def test_contains(self):
        resolver = ValueResolver({"Name": "Otto"})
        assert "Name" in resolver
        assert "Address" not in resolver

    def test_constructor_copies_values(self):
        """The resolver does not alias the caller's mapping."""
        values = {"Name": "Otto"}
        resolver = ValueResolver(values)
        values["Name"] = "Changed"
        assert resolver.resolve("Name") == "Otto"


class TestCallableResolver:
    """Test on-demand resolution."""

    def test_computed_value(self):
        resolver = CallableResolver(lambda name: name.upper())
        assert resolver.resolve("Name") == "NAME"

    def test_none_falls_back_to_default(self):
        resolver = CallableResolver(lambda name: None, default="???")
        assert resolver.resolve("Name") == "???"

    def test_unknown_identifier_skips_callable(self):
        calls = []
        resolver = CallableResolver(lambda name: calls.append(name) or "x", default="???")
        assert resolver.resolve(None) == "???"
        assert calls == []

    def test_set_default_value(self):
        resolver = CallableResolver(lambda name: None)
        resolver.set_default_value("-")
        assert resolver.resolve("Name") == "-"


class TestResolverInterface:
    """Any object with resolve() can be used."""

    def test_resolver_is_abstract(self):
        with pytest.raises(TypeError):
            Resolver()

    def test_custom_subclass(self):
        class Fixed(Resolver):
            def resolve(self, field_name):
                return "fixed"

        assert Fixed().resolve("anything") == "fixed"
