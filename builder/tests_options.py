from django.test import SimpleTestCase

from builder.services.options import (
    PLACEHOLDER_IMAGES,
    available_options,
    default_options,
    has_multiple_prices,
    resolve,
)
from hardware.records import record_from_dict


def keyboard(**extra):
    data = {
        "id": "kb1",
        "name": "Clicky TKL",
        "price": 99.99,
        "ean": "1111",
        "images": ["/img/kb-black.jpg"],
        "colour": ["Black", "White"],
        "size": ["TKL", "Full"],
    }
    data.update(extra)
    return record_from_dict("keyboard", data)


class ResolveTests(SimpleTestCase):
    def test_no_options_is_identity(self):
        kb = keyboard()
        resolved = resolve(kb, {})
        self.assertEqual(resolved.price, 99.99)
        self.assertEqual(resolved.identifier, "1111")
        self.assertEqual(resolved.images, ("/img/kb-black.jpg",))

    def test_no_images_uses_placeholders(self):
        kb = keyboard(images=[])
        self.assertEqual(resolve(kb).images, PLACEHOLDER_IMAGES)
        self.assertEqual(len(PLACEHOLDER_IMAGES), 4)

    def test_size_takes_precedence_over_colour(self):
        kb = keyboard(
            pricesByOption={
                "colour": {"White": 109.99},
                "size": {"Full": {"price": 129.99, "ean": "2222"}},
            }
        )
        resolved = resolve(kb, {"colour": "White", "size": "Full"})
        self.assertEqual(resolved.price, 129.99)
        self.assertEqual(resolved.identifier, "2222")

        only_colour = resolve(kb, {"colour": "White"})
        self.assertEqual(only_colour.price, 109.99)
        # a bare number keeps the base identifier
        self.assertEqual(only_colour.identifier, "1111")

    def test_colour_falls_back_to_color_table(self):
        kb = keyboard(pricesByOption={"color": {"White": 104.99}})
        self.assertEqual(resolve(kb, {"colour": "White"}).price, 104.99)

    def test_unmatched_value_uses_base_price(self):
        kb = keyboard(pricesByOption={"colour": {"White": 109.99}})
        self.assertEqual(resolve(kb, {"colour": "Pink"}).price, 99.99)

    def test_images_follow_selected_option(self):
        kb = keyboard(
            imagesByOption={"colour": {"White": ["/img/kb-white.jpg"]}}
        )
        self.assertEqual(
            resolve(kb, {"colour": "White"}).images, ("/img/kb-white.jpg",)
        )
        self.assertEqual(
            resolve(kb, {"colour": "Black"}).images, ("/img/kb-black.jpg",)
        )

    def test_images_check_alias_table(self):
        kb = keyboard(imagesByOption={"color": {"White": ["/img/w.jpg"]}})
        self.assertEqual(resolve(kb, {"colour": "White"}).images, ("/img/w.jpg",))


class OptionDiscoveryTests(SimpleTestCase):
    def test_available_and_default_options(self):
        kb = keyboard(color=["Red", "Blue"])
        self.assertEqual(
            available_options(kb),
            {"colour": ("Black", "White"), "size": ("TKL", "Full")},
        )
        self.assertEqual(default_options(kb), {"colour": "Black", "size": "TKL"})

    def test_has_multiple_prices(self):
        self.assertFalse(has_multiple_prices(keyboard()))
        self.assertFalse(
            has_multiple_prices(
                keyboard(pricesByOption={"colour": {"Black": 99.99}})
            )
        )
        self.assertTrue(
            has_multiple_prices(
                keyboard(
                    pricesByOption={
                        "colour": {"Black": 99.99, "White": {"price": 109.99}}
                    }
                )
            )
        )
