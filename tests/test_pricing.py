from pricing import derive_total, line_total


class TestDeriveTotal:
    def test_empty_items_total_zero(self):
        assert derive_total([]) == 0

    def test_sums_quantity_times_price(self):
        items = [{"quantity": 2, "price": 10}, {"quantity": 1, "price": 5}]
        assert derive_total(items) == 25

    def test_single_item(self):
        assert derive_total([{"quantity": 3, "price": 4}]) == 12

    def test_accepts_generator(self):
        items = ({"quantity": q, "price": 2.5} for q in (1, 2, 3))
        assert derive_total(items) == 15.0

    def test_does_not_mutate_items(self):
        items = [{"quantity": 2, "price": 3.0, "productId": "p1"}]
        derive_total(items)
        assert items == [{"quantity": 2, "price": 3.0, "productId": "p1"}]


class TestLineTotal:
    def test_line_total(self):
        assert line_total({"quantity": 4, "price": 0.5}) == 2.0
