"""
Tweak Kernel — Code Mutator Tests

apply_change(source, element, prop, value) → new source.

The mutator must:
  - touch only the span that holds the targeted property
  - keep at most one token per class group in a class list
  - keep the quoting style the source already uses
  - be a no-op when re-applying a property's current value
  - refuse stale elements instead of writing somewhere else
"""

import pytest

from engine.kernel.catalog import DEFAULT_CATALOG
from engine.kernel.errors import MutationError
from engine.kernel.extractor import extract
from engine.kernel.mutator import apply_change
from engine.kernel.types import MAPPING_ATTRIBUTE, PropertyDefinition


def component(body: str) -> str:
    return f"export default function Demo() {{\n  return (\n    {body}\n  )\n}}\n"


def change(source: str, element_id: str, name: str, value):
    """Extract, look up the element and property, apply one change."""
    element = extract(source).find_element(element_id)
    assert element is not None, f"no element {element_id}"
    prop = element.get_property(name)
    assert prop is not None, f"{element_id} has no property {name}"
    return apply_change(source, element, prop, value)


def class_tokens(source: str) -> list[str]:
    """Tokens of the first className="..." in the source."""
    return source.split('className="', 1)[1].split('"', 1)[0].split()


# ============================================================================
# Reference scenarios
# ============================================================================


class TestReferenceScenarios:
    def test_replace_background_keeps_other_tokens(self):
        source = component('<div className="bg-white text-base p-4">Panel</div>')
        result = change(source, "div-0", "backgroundColor", "bg-slate-900")
        assert "bg-slate-900" in result
        assert "text-base" in result
        assert "bg-white" not in result

    def test_padding_on_element_without_classes(self):
        source = component("<div>Sample</div>")
        result = change(source, "div-0", "padding", "p-6")
        assert 'className="p-6"' in result
        assert '<div className="p-6">Sample</div>' in result

    def test_placeholder_change_leaves_type_alone(self):
        source = component('<input type="text" placeholder="Search" />')
        result = change(source, "input-0", "placeholder", "Filter...")
        assert 'placeholder="Filter..."' in result
        assert 'type="text"' in result
        assert result == source.replace('"Search"', '"Filter..."')

    def test_button_text(self):
        source = component('<button className="bg-blue-500 text-white">Click me</button>')
        result = change(source, "button-0", "text", "Submit")
        assert "Submit</button>" in result
        assert "Click me</button>" not in result


# ============================================================================
# Idempotency
# ============================================================================


class TestIdempotency:
    def test_reapplying_every_default_is_a_no_op(self, hero_source):
        for element in extract(hero_source).iter_elements():
            for prop in element.properties:
                result = apply_change(hero_source, element, prop, prop.default_value)
                assert result == hero_source, f"{element.id}.{prop.name} changed the source"

    def test_applying_twice_equals_applying_once(self):
        source = component('<div className="bg-white p-4">x</div>')
        once = change(source, "div-0", "padding", "p-8")
        twice = change(once, "div-0", "padding", "p-8")
        assert once == twice

    @pytest.mark.parametrize("literal", ["{5}", "{2.50}"])
    def test_numeric_literal_on_string_attribute(self, literal):
        source = component(f"<input value={literal} />")
        current = extract(source).find_element("input-0").get_property("value").default_value
        assert change(source, "input-0", "value", current) == source

    def test_numeric_literal_keeps_braces_for_new_number(self):
        source = component("<input value={5} />")
        assert "<input value={7} />" in change(source, "input-0", "value", "7")
        assert '<input value="seven" />' in change(source, "input-0", "value", "seven")


# ============================================================================
# Class groups
# ============================================================================


class TestClassGroups:
    def test_new_token_takes_the_old_position(self):
        source = component('<div className="bg-white text-base p-4">x</div>')
        result = change(source, "div-0", "backgroundColor", "bg-slate-900")
        assert 'className="bg-slate-900 text-base p-4"' in result

    def test_value_without_prefix_is_prefixed(self):
        source = component('<div className="bg-white">x</div>')
        assert 'className="bg-slate-900"' in change(source, "div-0", "backgroundColor", "slate-900")

    def test_bare_number_becomes_px_arbitrary_value(self):
        source = component('<div className="p-4">x</div>')
        assert 'className="p-[16px]"' in change(source, "div-0", "padding", "16")

    def test_css_length_becomes_arbitrary_value(self):
        source = component('<p className="text-sm">x</p>')
        assert 'className="text-[1.5rem]"' in change(source, "p-0", "fontSize", "1.5rem")

    def test_hex_color_becomes_arbitrary_value(self):
        source = component('<div className="bg-white">x</div>')
        assert 'className="bg-[#ff0000]"' in change(source, "div-0", "backgroundColor", "#ff0000")

    def test_named_color_is_still_a_background_token(self):
        source = component('<div className="bg-white p-4">x</div>')
        source = change(source, "div-0", "backgroundColor", "red")
        assert 'className="bg-[red] p-4"' in source
        assert extract(source).find_element("div-0").get_property("backgroundColor").default_value == "bg-[red]"
        source = change(source, "div-0", "backgroundColor", "bg-blue-500")
        assert 'className="bg-blue-500 p-4"' in source

    def test_free_form_shadow_can_be_replaced(self):
        source = component('<div className="shadow-sm">x</div>')
        source = change(source, "div-0", "shadow", "0 1px 2px black")
        assert 'className="shadow-[0_1px_2px_black]"' in source
        source = change(source, "div-0", "shadow", "shadow-lg")
        assert 'className="shadow-lg"' in source

    def test_font_family_arbitrary_value(self):
        source = component('<p className="font-sans font-bold">x</p>')
        source = change(source, "p-0", "fontFamily", "Inter")
        assert 'className="font-[Inter] font-bold"' in source
        assert change(source, "p-0", "fontFamily", "font-mono").count("font-") == 2

    def test_clearing_removes_the_token(self):
        source = component('<div className="bg-white p-4">x</div>')
        assert 'className="bg-white"' in change(source, "div-0", "padding", "")

    def test_variant_prefixed_tokens_survive(self):
        source = component('<div className="hover:bg-red-500 bg-white">x</div>')
        result = change(source, "div-0", "backgroundColor", "bg-black")
        assert 'className="hover:bg-red-500 bg-black"' in result

    def test_duplicate_tokens_collapse_to_one(self):
        source = component('<div className="p-2 flex p-4">x</div>')
        result = change(source, "div-0", "padding", "p-6")
        assert 'className="p-6 flex"' in result

    def test_exclusivity_over_a_sequence_of_changes(self):
        source = component('<div className="bg-white text-base p-4 rounded">x</div>')
        steps = [
            ("padding", "p-2"),
            ("padding", "16"),
            ("backgroundColor", "#123456"),
            ("padding", "1.5rem"),
            ("fontSize", "text-xl"),
            ("backgroundColor", "bg-slate-100"),
            ("borderRadius", "rounded-full"),
            ("padding", "p-[3px]"),
        ]
        for name, value in steps:
            source = change(source, "div-0", name, value)
            classes = class_tokens(source)
            for group in DEFAULT_CATALOG.class_groups:
                assert len([t for t in classes if group.matches(t)]) <= 1, f"{group.name} after {name}={value}"
        assert class_tokens(source) == ["bg-slate-100", "text-xl", "p-[3px]", "rounded-full"]

    def test_single_quotes_are_kept(self):
        source = component("<div className='bg-white p-4'>x</div>")
        assert "className='bg-white p-8'" in change(source, "div-0", "padding", "p-8")

    def test_expression_string_is_kept(self):
        source = component('<div className={"bg-white p-4"}>x</div>')
        assert 'className={"bg-white p-8"}' in change(source, "div-0", "padding", "p-8")

    def test_template_string_is_kept(self):
        source = component("<div className={`bg-white p-4`}>x</div>")
        assert "className={`bg-white p-8`}" in change(source, "div-0", "padding", "p-8")

    def test_computed_class_list_is_refused(self):
        element = extract(component('<div className="p-4">x</div>')).find_element("div-0")
        computed = component('<div className={cn("p-4", extra)}>x</div>')
        with pytest.raises(MutationError):
            apply_change(computed, element, element.get_property("padding"), "p-8")


# ============================================================================
# Attributes
# ============================================================================


class TestAttributes:
    def test_add_missing_attribute(self):
        source = component("<a>Docs</a>")
        assert '<a href="/docs">Docs</a>' in change(source, "a-0", "href", "/docs")

    def test_remove_attribute_with_empty_value(self):
        source = component('<input type="text" placeholder="Search" />')
        assert '<input type="text" />' in change(source, "input-0", "placeholder", "")

    def test_false_removes_boolean_attribute(self):
        source = component("<input disabled />")
        assert "<input />" in change(source, "input-0", "disabled", False)

    def test_true_writes_bare_attribute(self):
        source = component('<input placeholder="x" />')
        element = extract(source).find_element("input-0")
        prop = PropertyDefinition(
            name="disabled", label="Disabled", type="boolean", mapping=MAPPING_ATTRIBUTE, attribute="disabled"
        )
        assert '<input placeholder="x" disabled />' in apply_change(source, element, prop, True)

    def test_numbers_are_written_as_expressions(self):
        source = component("<textarea rows={4} />")
        assert "rows={6}" in change(source, "textarea-0", "rows", 6)
        assert "rows={8}" in change(source, "textarea-0", "rows", "8")

    def test_value_with_quote_falls_back_to_expression(self):
        source = component('<img src="/a.png" alt="Logo" />')
        result = change(source, "img-0", "alt", 'The "best" logo')
        assert 'alt={"The \\"best\\" logo"}' in result

    def test_attribute_on_multiline_tag(self):
        source = component('<input\n      type="text"\n      placeholder="Search"\n    />')
        result = change(source, "input-0", "placeholder", "Find")
        assert 'placeholder="Find"' in result
        assert result.count("\n") == source.count("\n")


# ============================================================================
# Content
# ============================================================================


class TestContent:
    def test_surrounding_whitespace_is_kept(self):
        source = component("<p>\n      Hello\n    </p>")
        assert "<p>\n      Bye\n    </p>" in change(source, "p-0", "text", "Bye")

    def test_markup_characters_are_wrapped(self):
        source = component("<p>Hello</p>")
        assert '<p>{"a < b"}</p>' in change(source, "p-0", "text", "a < b")

    def test_string_expression_is_replaced(self):
        source = component('<p>{"Hello"}</p>')
        assert "<p>Bye</p>" in change(source, "p-0", "text", "Bye")

    def test_multibyte_text(self):
        source = component("<div><h1>Café ☕</h1><p>Héllo</p></div>")
        result = change(source, "p-0_1", "text", "Thé 🍵")
        assert result == source.replace("Héllo", "Thé 🍵")

    def test_cleared_text_stays_editable(self):
        source = change(component("<p>Hello</p>"), "p-0", "text", "")
        assert '<p>{""}</p>' in source
        assert extract(source).find_element("p-0").get_property("text").default_value == ""
        assert "<p>Again</p>" in change(source, "p-0", "text", "Again")

    def test_element_without_inline_text_is_refused(self):
        element = extract(component("<p>Hello</p>")).find_element("p-0")
        with pytest.raises(MutationError):
            apply_change(component("<p><b>Hello</b></p>"), element, element.get_property("text"), "Bye")


# ============================================================================
# Stale elements
# ============================================================================


class TestStaleElements:
    def test_missing_path(self, hero_source):
        element = extract(hero_source).find_element("button-0_2")
        shorter = hero_source.replace('      <Button variant="outline" size="lg">Get started</Button>\n', "")
        with pytest.raises(MutationError):
            apply_change(shorter, element, element.get_property("text"), "Go")

    def test_tag_mismatch(self, hero_source):
        element = extract(hero_source).find_element("p-0_1")
        swapped = hero_source.replace("<p>Build faster.</p>", "<span>Build faster.</span>")
        with pytest.raises(MutationError):
            apply_change(swapped, element, element.get_property("text"), "Ship")
