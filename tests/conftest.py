import httpx
import pytest
from app import create_app
from app.models.product import (
    ProductCore,
    ProductImage,
    ProductPrice,
    ProductSnapshot,
    ProductVariance,
)
from app.services.api_client import ApiClient, ClientContext


@pytest.fixture(scope="session")
def app():
    """Create application for testing."""
    app = create_app("testing")
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_client(client):
    """Test client with an operator already logged in."""
    with client.session_transaction() as sess:
        sess["auth_token"] = "test-token"
        sess["username"] = "admin"
    return client


@pytest.fixture
def context():
    return ClientContext(
        token="test-token",
        api_base_url="http://api.test",
        product_api_base_url="http://products.test",
    )


@pytest.fixture
def make_api_client(context):
    """Build an ApiClient whose requests are answered by ``handler``."""

    def factory(handler):
        return ApiClient(context, transport=httpx.MockTransport(handler))

    return factory


@pytest.fixture
def snapshot():
    """Product 7: two images, three variances with prices."""
    return ProductSnapshot(
        product=ProductCore(id=7, name="Tee", has_variants=True),
        images=[
            ProductImage(id=1, url="https://cdn.test/1.jpg", position=0),
            ProductImage(id=2, url="https://cdn.test/2.jpg", position=1),
        ],
        variances=[
            ProductVariance(
                id=10, name="Red", sku="T-R", stock=3,
                attributes={"Color": "Red"}, price=ProductPrice(id=100, price=20),
            ),
            ProductVariance(
                id=11, name="Blue", sku="T-B", stock=4,
                attributes={"Color": "Blue"}, price=ProductPrice(id=101, price=21),
            ),
            ProductVariance(
                id=12, name="Green", sku="T-G", stock=5,
                attributes={"Color": "Green"}, price=ProductPrice(id=102, price=22),
            ),
        ],
        variant_options=[{"name": "Color", "values": ["Red", "Blue", "Green"]}],
    )
