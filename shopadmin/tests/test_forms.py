"""Tests for the form to product mapping and its inverse."""

import pytest

from shopadmin.errors import FormValidationError
from shopadmin.forms import (
    ProductForm,
    ShippingFeeForm,
    SizeForm,
    SizeRow,
    SpecificationRow,
    VariationRow,
    build_update_payload,
    form_to_product,
    parse_images,
    parse_int,
    parse_number,
    parse_specifications,
    parse_stock_value,
    parse_variations,
    parse_weight,
    product_to_form,
    resolve_primary_image,
    serialize_images,
    unlisted_size_label,
)
from shopadmin.models import (
    LocalizedString,
    Product,
    ProductVariation,
    ProductVariationSizeOption,
    SizeOption,
    create,
)


class TestFieldParsers:
    """Test the single-field parsers."""

    def test_parse_images_trims_and_drops_blank_lines(self):
        text = "  https://a.test/1.jpg \n\n\t\nhttps://a.test/2.jpg"
        assert parse_images(text) == ["https://a.test/1.jpg", "https://a.test/2.jpg"]

    def test_serialize_images_round_trip(self):
        images = ["https://a.test/1.jpg", "https://a.test/2.jpg"]
        assert parse_images(serialize_images(images)) == images

    def test_primary_image_is_first_of_block(self):
        assert resolve_primary_image(["a", "b"], "c") == ("a", ["a", "b"])

    def test_primary_image_falls_back_to_single_field(self):
        assert resolve_primary_image([], " c ") == ("c", ["c"])
        assert resolve_primary_image([], "") == ("", [])

    @pytest.mark.parametrize("text", ["", "abc", "nan", "inf", None])
    def test_parse_number_failures_are_zero(self, text):
        assert parse_number(text) == 0

    def test_parse_number_values(self):
        assert parse_number(" 12.5 ") == 12.5
        assert parse_int("7") == 7
        assert parse_int("7.9") == 7
        assert parse_weight("0.45") == 0.45

    def test_parse_stock_value(self):
        assert parse_stock_value(" 12 ") == 12

    @pytest.mark.parametrize("text", ["", "x", "1.5", "-1"])
    def test_parse_stock_value_rejects_invalid(self, text):
        with pytest.raises(FormValidationError):
            parse_stock_value(text)


class TestSpecifications:
    def test_rows_without_key_are_dropped(self):
        rows = [SpecificationRow(value_en="orphan"), SpecificationRow(key_en="  ")]
        assert parse_specifications(rows) == []

    def test_missing_locale_copies_the_other(self):
        rows = [SpecificationRow(key_vi="Chất liệu", value_en="Canvas")]
        [spec] = parse_specifications(rows)
        assert spec.key == create("Chất liệu", "Chất liệu")
        assert spec.value == create("Canvas", "Canvas")


class TestVariations:
    """Test variation inclusion rules and size resolution."""

    def test_variation_without_color_is_dropped(self, catalog):
        rows = [VariationRow(sizes=[SizeRow(size_id="s40", price="1", stock="1")])]
        assert parse_variations(rows, catalog) == []

    def test_variation_without_selected_size_is_dropped(self, catalog):
        rows = [VariationRow(color_en="Red", sizes=[SizeRow(price="1", stock="1")])]
        assert parse_variations(rows, catalog) == []

    def test_unselected_size_rows_dropped_individually(self, catalog):
        rows = [
            VariationRow(
                color_vi="Đỏ",
                sizes=[SizeRow(size_id="s40", price="10", stock="2"), SizeRow(price="5")],
            )
        ]
        [variation] = parse_variations(rows, catalog)
        assert variation.color == LocalizedString(en="", vi="Đỏ")
        assert len(variation.size_options) == 1
        option = variation.size_options[0]
        assert option.size == catalog[0]
        assert (option.price, option.stock) == (10, 2)

    def test_unparsable_price_and_stock_are_zero(self, catalog):
        rows = [VariationRow(color_en="Red", sizes=[SizeRow(size_id="s41", price="abc", stock="")])]
        option = parse_variations(rows, catalog)[0].size_options[0]
        assert (option.price, option.stock) == (0, 0)

    def test_unknown_size_id_is_a_validation_error(self, catalog):
        rows = [VariationRow(color_en="Red", sizes=[SizeRow(size_id="gone", price="1")])]
        with pytest.raises(FormValidationError) as exc_info:
            parse_variations(rows, catalog)
        assert "gone" in exc_info.value.message


class TestFormToProduct:
    """Test whole-form parsing and validation."""

    def test_full_form(self, product_form, catalog):
        product = form_to_product(product_form, catalog)

        assert product.name == create("Canvas Sneaker", "Giày vải")
        assert product.short_description == create("Light", "")
        assert product.image == "https://img.test/a.jpg"
        assert product.images == ["https://img.test/a.jpg", "https://img.test/b.jpg"]
        assert product.weight == 0.8
        assert len(product.specifications) == 1
        assert len(product.variations) == 1
        sizes = [option.size for option in product.variations[0].size_options]
        assert sizes == [catalog[0], catalog[2]]
        assert product.variations[0].size_options[1].price == 600000.5

    def test_name_is_required(self, catalog):
        with pytest.raises(FormValidationError) as exc_info:
            form_to_product(ProductForm(), catalog)
        assert exc_info.value.errors == ["Product name is required"]

    def test_name_in_one_locale_is_enough(self, catalog):
        product = form_to_product(ProductForm(name_vi="Giày"), catalog)
        assert product.name == create("", "Giày")

    def test_empty_short_description_is_omitted(self, catalog):
        product = form_to_product(ProductForm(name_en="Shoe"), catalog)
        assert product.short_description is None
        assert "shortDescription" not in product.to_payload()

    def test_image_field_used_without_images_block(self, catalog):
        product = form_to_product(ProductForm(name_en="Shoe", image="https://a.test/x.jpg"), catalog)
        assert product.image == "https://a.test/x.jpg"
        assert product.images == ["https://a.test/x.jpg"]

    def test_all_errors_reported_together(self, catalog):
        form = ProductForm(
            weight="-1",
            variations=[
                VariationRow(
                    color_en="Red",
                    sizes=[SizeRow(size_id="s40", price="-5", stock="-2"), SizeRow(size_id="nope")],
                )
            ],
        )
        with pytest.raises(FormValidationError) as exc_info:
            form_to_product(form, catalog)
        errors = exc_info.value.errors
        assert "Product name is required" in errors
        assert "Weight must not be negative" in errors
        assert any("price" in error for error in errors)
        assert any("stock" in error for error in errors)
        assert any("nope" in error for error in errors)


class TestProductToForm:
    """Test the inverse mapping used to populate edit forms."""

    def test_round_trip(self, product_form, catalog):
        product = form_to_product(product_form, catalog)
        assert form_to_product(product_to_form(product, catalog), catalog) == product

    def test_round_trip_without_optional_fields(self, catalog):
        product = form_to_product(ProductForm(name_en="Plain", in_stock=False), catalog)
        assert form_to_product(product_to_form(product, catalog), catalog) == product

    def test_wire_sizes_map_back_by_eu_us_pair(self, product, catalog):
        form = product_to_form(product, catalog)
        ids = [[row.size_id for row in variation.sizes] for variation in form.variations]
        assert ids == [["s40", "s41"], ["s42"]]
        assert form.variations[0].sizes[0].price == "500000"
        assert form.images == "https://img.test/a.jpg\nhttps://img.test/b.jpg"
        assert form.weight == "0.8"

    def test_round_trip_keeps_full_precision(self, catalog):
        form = ProductForm(
            name_en="Precise",
            weight="0.1234567",
            variations=[
                VariationRow(color_en="Red", sizes=[SizeRow("s40", "19.9999999", "1")])
            ],
        )
        product = form_to_product(form, catalog)
        again = form_to_product(product_to_form(product, catalog), catalog)
        assert again.weight == 0.1234567
        assert again.variations[0].size_options[0].price == 19.9999999
        assert again == product

    def test_size_missing_from_catalog_keeps_a_marker(self, product, catalog):
        form = product_to_form(product, catalog[:1])
        assert [row.size_id for row in form.variations[0].sizes] == ["s40", "unlisted:41/8"]
        assert [row.size_id for row in form.variations[1].sizes] == ["unlisted:42/8.5"]
        assert unlisted_size_label("unlisted:42/8.5") == "EU 42 / US 8.5"
        assert unlisted_size_label("s40") is None

    def test_size_missing_from_catalog_blocks_save(self, product, catalog):
        form = product_to_form(product, catalog[:1])
        form.name_en = "Renamed"
        with pytest.raises(FormValidationError) as exc_info:
            form_to_product(form, catalog[:1])
        errors = exc_info.value.errors
        assert errors == [
            "Variation 1: EU 41 / US 8 is not in the size catalog; add it to the catalog or pick another size",
            "Variation 2: EU 42 / US 8.5 is not in the size catalog; add it to the catalog or pick another size",
        ]

    def test_missing_short_description_gives_empty_fields(self, catalog):
        form = product_to_form(Product(name=create("A", "B")), catalog)
        assert form.short_description_en == ""
        assert form.short_description_vi == ""


class TestUpdatePayload:
    def test_only_changed_fields(self, product_form, catalog):
        original = form_to_product(product_form, catalog)
        product_form.name_en = "Canvas Sneaker II"
        product_form.weight = "0.9"
        changes = build_update_payload(original, form_to_product(product_form, catalog))
        assert set(changes) == {"name", "weight"}
        assert changes["name"] == {"en": "Canvas Sneaker II", "vi": "Giày vải"}

    def test_no_changes(self, product_form, catalog):
        product = form_to_product(product_form, catalog)
        assert build_update_payload(product, product) == {}

    def test_removed_short_description_sent_as_null(self, product_form, catalog):
        original = form_to_product(product_form, catalog)
        product_form.short_description_en = ""
        changes = build_update_payload(original, form_to_product(product_form, catalog))
        assert changes == {"shortDescription": None}


class TestProductFormState:
    def test_padded_appends_blank_rows(self, product_form):
        padded = product_form.padded(variations=1, sizes=2, specifications=1)
        assert len(padded.variations) == 3
        assert len(padded.variations[0].sizes) == 5
        assert len(padded.variations[-1].sizes) == 2
        assert len(padded.specifications) == 3
        assert len(product_form.variations) == 2

    def test_from_dict_round_trip(self, product_form):
        assert ProductForm.from_dict(product_form.to_dict()) == product_form


class TestShippingAndSizeForms:
    def test_shipping_payload(self):
        payload = ShippingFeeForm(" vn ", "30000", "10000.5", False).to_payload()
        assert payload == {"country": "VN", "baseFee": 30000, "perKgRate": 10000.5, "isActive": False}

    def test_shipping_update_leaves_active_flag_out(self):
        payload = ShippingFeeForm("US", "1", "2").to_payload(include_active=False)
        assert "isActive" not in payload

    def test_shipping_invalid_fee_defaults_to_zero(self):
        assert ShippingFeeForm("VN", "abc", "").to_payload()["baseFee"] == 0

    def test_shipping_requires_country(self):
        with pytest.raises(FormValidationError):
            ShippingFeeForm("  ", "1", "1").to_payload()

    def test_shipping_rejects_negative_fees(self):
        with pytest.raises(FormValidationError) as exc_info:
            ShippingFeeForm("VN", "-1", "-2").to_payload()
        assert len(exc_info.value.errors) == 2

    def test_size_payload(self):
        assert SizeForm("42", "8.5").to_payload() == {"EU": 42.0, "US": 8.5}

    def test_size_requires_both_systems(self):
        with pytest.raises(FormValidationError) as exc_info:
            SizeForm("42", "").to_payload()
        assert exc_info.value.message == "Both EU and US sizes are required"

    def test_size_rejects_text(self):
        with pytest.raises(FormValidationError):
            SizeForm("big", "9").to_payload()


def test_catalog_id_prefers_exact_id(catalog):
    """A stored size carrying a catalog id maps back to that entry, not an equal pair."""
    duplicate = SizeOption(eu=40, us=7, id="s40-dup")
    product = Product(
        name=create("X", ""),
        variations=[
            ProductVariation(
                color=create("Red", ""),
                size_options=[ProductVariationSizeOption(size=duplicate, price=1, stock=1)],
            )
        ],
    )
    form = product_to_form(product, catalog + [duplicate])
    assert form.variations[0].sizes[0].size_id == "s40-dup"
