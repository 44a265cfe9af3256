import unittest
from datetime import datetime
from unittest import mock

from backoffice.services import products_service
from backoffice.services.blob_store import MemoryBlobStore
from backoffice.validation import ValidationError


def pallet(**overrides):
    data = {
        "name": "Euro Pallet 48x40",
        "category": "Industrial Wooden Pallets",
        "woodType": "Pine Wood",
        "length": 48,
        "width": 40,
        "height": 9,
        "pricePerCft": 50,
        "quantity": 20,
        "minOrderQuantity": 5,
    }
    data.update(overrides)
    return data


class ProductsServiceTests(unittest.TestCase):
    def setUp(self):
        self.store = MemoryBlobStore()

    def test_create_computes_derived_fields(self):
        product = products_service.create_product(pallet(), store=self.store)

        self.assertAlmostEqual(product.cft_per_piece, 10.0)
        self.assertEqual(product.price_per_piece, 500.0)
        self.assertEqual(product.status, "In Stock")
        self.assertEqual(product.created_at, product.updated_at)
        self.assertEqual(len(product.id), 36)

        stored = products_service.get_product(product.id, store=self.store)
        self.assertEqual(stored, product)

    def test_create_ignores_derived_input(self):
        product = products_service.create_product(
            pallet(cftPerPiece=99, pricePerPiece=1, status="Out of Stock"),
            store=self.store,
        )
        self.assertAlmostEqual(product.cft_per_piece, 10.0)
        self.assertEqual(product.price_per_piece, 500.0)
        self.assertEqual(product.status, "In Stock")

    def test_create_validation(self):
        bad_inputs = [
            pallet(name=""),
            pallet(woodType="Teak"),
            pallet(length=0),
            pallet(pricePerCft=-1),
            pallet(quantity=2.5),
            pallet(minOrderQuantity=0),
        ]
        for data in bad_inputs:
            with self.subTest(data=data):
                with self.assertRaises(ValidationError):
                    products_service.create_product(data, store=self.store)
        self.assertEqual(products_service.list_products(store=self.store), [])

    def test_search_matches_name_or_category(self):
        euro = products_service.create_product(pallet(), store=self.store)
        two_way = products_service.create_product(
            pallet(name="Heavy Duty 2-Way", category="EURO 2-Way Pallets"), store=self.store
        )

        def names(term):
            return [p.name for p in products_service.list_products(store=self.store, search=term)]

        self.assertEqual(names("heavy"), [two_way.name])
        self.assertEqual(names("industrial"), [euro.name])
        self.assertEqual(names("PALLET"), [euro.name, two_way.name])
        self.assertEqual(names("teak"), [])

    def test_update_recomputes_on_dimension_change(self):
        product = products_service.create_product(pallet(), store=self.store)

        later = datetime(2030, 1, 1, 12, 0, 0)
        with mock.patch("backoffice.services.products_service.utcnow", return_value=later):
            updated = products_service.update_product(product.id, {"height": 18}, store=self.store)

        self.assertAlmostEqual(updated.cft_per_piece, 20.0)
        self.assertEqual(updated.price_per_piece, 1000.0)
        self.assertEqual(updated.updated_at, later)
        self.assertEqual(updated.created_at, product.created_at)

    def test_update_price_per_cft_recomputes_price(self):
        product = products_service.create_product(pallet(), store=self.store)
        updated = products_service.update_product(product.id, {"pricePerCft": 62.5}, store=self.store)
        self.assertEqual(updated.price_per_piece, 625.0)

    def test_update_recomputes_status_on_stock_change(self):
        product = products_service.create_product(pallet(), store=self.store)

        low = products_service.update_product(product.id, {"quantity": 10}, store=self.store)
        self.assertEqual(low.status, "Low Stock")

        out = products_service.update_product(product.id, {"quantity": 0}, store=self.store)
        self.assertEqual(out.status, "Out of Stock")

        back = products_service.update_product(product.id, {"minOrderQuantity": 1, "quantity": 3}, store=self.store)
        self.assertEqual(back.status, "In Stock")

    def test_update_ignores_derived_fields(self):
        product = products_service.create_product(pallet(), store=self.store)
        updated = products_service.update_product(
            product.id,
            {"cftPerPiece": 1, "pricePerPiece": 1, "status": "Out of Stock", "notes": "Heat treated"},
            store=self.store,
        )
        self.assertAlmostEqual(updated.cft_per_piece, 10.0)
        self.assertEqual(updated.price_per_piece, 500.0)
        self.assertEqual(updated.status, "In Stock")
        self.assertEqual(updated.notes, "Heat treated")

    def test_update_unknown_returns_none(self):
        self.assertIsNone(products_service.update_product("missing", {"quantity": 1}, store=self.store))

    def test_update_invalid_value_leaves_product_untouched(self):
        product = products_service.create_product(pallet(), store=self.store)
        with self.assertRaises(ValidationError):
            products_service.update_product(product.id, {"width": -3}, store=self.store)
        self.assertEqual(products_service.get_product(product.id, store=self.store).width, 40)

    def test_delete(self):
        product = products_service.create_product(pallet(), store=self.store)
        self.assertTrue(products_service.delete_product(product.id, store=self.store))
        self.assertFalse(products_service.delete_product(product.id, store=self.store))
        self.assertIsNone(products_service.get_product(product.id, store=self.store))

    def test_reset(self):
        products_service.create_product(pallet(), store=self.store)
        products_service.create_product(pallet(name="CP1"), store=self.store)
        products_service.reset_products(store=self.store)
        self.assertEqual(products_service.list_products(store=self.store), [])


if __name__ == "__main__":
    unittest.main()
