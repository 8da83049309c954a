from app.models.product import (  # noqa: F401
    ProductCore,
    ProductFields,
    ProductImage,
    ProductPrice,
    ProductSnapshot,
    ProductVariance,
)
from app.models.variant import OptionSet, Variant, VariantOptionGroup  # noqa: F401
from app.models.image import StagedImage  # noqa: F401
from app.models.customer import ChatMessage, Customer, Session  # noqa: F401
from app.models.dashboard import DashboardState, MetricState  # noqa: F401
