from unittest.mock import AsyncMock, patch


def test_products_command(app):
    result = {
        "products": [{"id": 4, "name": "Linen Shirt"}],
        "total": 51,
        "total_pages": 2,
        "page": 2,
    }
    runner = app.test_cli_runner()
    with patch(
        "app.services.product_service.list_products", new=AsyncMock(return_value=result)
    ) as list_products:
        out = runner.invoke(args=["products", "--page", "2", "--query", "linen"])

    assert out.exit_code == 0
    assert "Page 2/2 (51 products)" in out.output
    assert "#4: Linen Shirt" in out.output
    assert list_products.await_args.args[1:] == (2, 50, "linen")


def test_validate_token_without_token_fails(app):
    runner = app.test_cli_runner()
    out = runner.invoke(args=["validate-token"])
    assert out.exit_code == 1
    assert "missing or expired" in out.output


def test_metrics_command_reports_expired_session(app):
    async def expire(client, state, period=None):
        state.session_expired = True
        return state

    runner = app.test_cli_runner()
    with patch(
        "app.services.metrics_service.refresh_dashboard", new=AsyncMock(side_effect=expire)
    ):
        out = runner.invoke(args=["metrics", "--period", "hour"])
    assert out.exit_code == 1
    assert "Session expired" in out.output
