# Overview: Pytest coverage for the `flask meatpack` CLI commands.

from meatpack.records import STATUS_FULFILLED

from tests.conftest import make_client, make_order


def invoke(app, *args):
    return app.test_cli_runner().invoke(args=["meatpack", *args])


class TestBootstrapCommands:

    def test_init_reports_backend(self, app, backend_name):
        result = invoke(app, "init")
        assert result.exit_code == 0, result.output
        assert f"backend: {backend_name}" in result.output

    def test_seed_is_repeatable(self, app, persistence):
        first = invoke(app, "seed")
        assert first.exit_code == 0, first.output
        assert first.output.count("PASS Created product") == 5

        second = invoke(app, "seed")
        assert second.exit_code == 0, second.output
        assert second.output.count("already exists") == 5
        assert len(persistence.products.get_all()) == 5


class TestInspectionCommands:

    def test_dump_products(self, app, stocked):
        result = invoke(app, "dump-products")
        assert result.exit_code == 0, result.output
        assert "Picanha" in result.output
        assert "899.00" in result.output  # 10 kg x 89.90

    def test_dump_empty(self, app):
        assert "No products registered." in invoke(app, "dump-products").output
        assert "No clients registered." in invoke(app, "dump-clients").output
        assert "No orders found." in invoke(app, "dump-orders").output

    def test_dump_clients_hides_password(self, app, persistence):
        stored = persistence.clients.add(make_client())
        result = invoke(app, "dump-clients")
        assert "joao@example.com" in result.output
        assert stored.password not in result.output

    def test_dump_orders_by_status(self, app, stocked):
        stocked.orders.add(make_order([(1, 5, 80.0)]))
        stocked.orders.add(make_order([(3, 1, 30.0)], supplier="Granja São José"))
        stocked.orders.set_status(2, STATUS_FULFILLED)

        result = invoke(app, "dump-orders", "--status", "aguardando")
        assert result.exit_code == 0, result.output
        assert "#1" in result.output
        assert "#2" not in result.output
        assert "total R$ 400.00" in result.output

    def test_history(self, app, stocked):
        stocked.inventory.withdraw(1, 2.5, "Reservado para cliente")
        result = invoke(app, "history", "1")
        assert result.exit_code == 0, result.output
        assert "saida" in result.output
        assert "-2.5 kg" in result.output
        assert "No movements for product 2." in invoke(app, "history", "2").output


class TestStockCommands:

    def test_withdraw(self, app, stocked):
        result = invoke(app, "withdraw", "3", "1.5", "Troca com fornecedor por avaria")
        assert result.exit_code == 0, result.output
        assert stocked.products.get(3).quantity == 3.5

    def test_withdraw_insufficient_stock_is_a_cli_error(self, app, stocked):
        result = invoke(app, "withdraw", "2", "1", "Reservado para cliente")
        assert result.exit_code == 1
        assert "Insufficient stock" in result.output
        assert stocked.movements.all() == []

    def test_fulfill(self, app, stocked):
        order_id = stocked.orders.add(make_order([(2, 4, 17.5)]))
        result = invoke(app, "fulfill", str(order_id))
        assert result.exit_code == 0, result.output
        assert stocked.products.get(2).quantity == 4

        again = invoke(app, "fulfill", str(order_id))
        assert again.exit_code == 1
        assert "already delivered" in again.output
