from sqlalchemy import select

from app.shopdesk.core.config import settings
from app.shopdesk.core.security import get_password_hash
from app.shopdesk.db.models import BusinessType, Plan, User
from app.shopdesk.services.plan_gating import DEFAULT_FEATURE_SETS


DEFAULT_PLANS = [
    {
        "name": "Basic",
        "price": 999,
        "description": "Perfect for small clothing stores just getting started",
        "features": ["POS System", "Basic Inventory", "Customer Management", "Basic Reports"],
        "allowed_features": DEFAULT_FEATURE_SETS["basic"],
        "max_users": 3,
        "max_products": 500,
    },
    {
        "name": "Pro",
        "price": 2499,
        "description": "Ideal for growing fashion businesses with multiple staff",
        "features": [
            "Advanced POS",
            "Full Inventory",
            "Customer Management",
            "Advanced Reports",
            "WhatsApp Integration",
            "Staff Management",
        ],
        "allowed_features": DEFAULT_FEATURE_SETS["standard"],
        "max_users": 10,
        "max_products": 2000,
    },
    {
        "name": "Enterprise",
        "price": 4999,
        "description": "Complete solution for large fashion retailers and chains",
        "features": [
            "Complete POS Suite",
            "Unlimited Inventory",
            "Advanced CRM",
            "Analytics Dashboard",
            "Multi-location",
            "API Access",
            "Priority Support",
        ],
        "allowed_features": DEFAULT_FEATURE_SETS["premium"],
        "max_users": 50,
        "max_products": 10000,
    },
]


def _field(name, field_type, required=False, options=None):
    field = {"name": name, "type": field_type, "required": required, "enabled": True}
    if options:
        field["options"] = options
    return field


DEFAULT_BUSINESS_TYPES = [
    {
        "name": "Fashion Retail Store",
        "description": "Complete clothing and fashion retail business",
        "fields": [
            _field("Name", "text", True),
            _field("SKU", "text", True),
            _field("Barcode", "barcode"),
            _field("Category", "select", True, ["Shirts", "Pants", "Dresses", "Jackets", "Accessories"]),
            _field("Brand", "select", False, ["Nike", "Adidas", "Zara", "H&M", "Local Brand"]),
            _field("Price", "number", True),
            _field("Cost Price", "number", True),
            _field("Stock", "number", True),
            _field("Min Stock", "number"),
            _field("Sizes", "text"),
            _field("Colors", "text"),
            _field("Material", "select", False, ["Cotton", "Polyester", "Silk", "Wool", "Denim", "Leather"]),
            _field("Season", "select", False, ["Spring", "Summer", "Fall", "Winter", "All Season"]),
            _field("Gender", "select", False, ["Men", "Women", "Kids", "Unisex"]),
            _field("Description", "textarea"),
        ],
    },
    {
        "name": "Shoe Store",
        "description": "Specialized footwear retail business",
        "fields": [
            _field("Shoe Type", "select", True, ["Sneakers", "Formal", "Boots", "Sandals", "Sports", "Casual"]),
            _field("Shoe Size", "select", True, ["6", "7", "8", "9", "10", "11", "12"]),
            _field("Width", "select", False, ["Narrow", "Medium", "Wide", "Extra Wide"]),
            _field("Sole Type", "select", False, ["Rubber", "Leather", "Synthetic", "EVA"]),
            _field("Heel Height", "number"),
            _field("Waterproof", "select", False, ["Yes", "No"]),
        ],
    },
    {
        "name": "Accessories Store",
        "description": "Fashion accessories and jewelry business",
        "fields": [
            _field(
                "Accessory Type",
                "select",
                True,
                ["Jewelry", "Bags", "Belts", "Watches", "Sunglasses", "Scarves", "Hats"],
            ),
            _field("Metal Type", "select", False, ["Gold", "Silver", "Platinum", "Stainless Steel", "Brass"]),
            _field("Stone Type", "select", False, ["Diamond", "Ruby", "Emerald", "Sapphire", "Pearl", "None"]),
            _field("Chain Length", "number"),
            _field("Ring Size", "select", False, ["5", "6", "7", "8", "9", "10", "11", "12"]),
            _field("Warranty Period", "number"),
        ],
    },
    {
        "name": "Electronics Store",
        "description": "Consumer electronics and gadgets",
        "fields": [
            _field("Product Type", "select", True, ["Smartphone", "Laptop", "Tablet", "Headphones", "Charger", "Case"]),
            _field("Model Number", "text", True),
            _field("Warranty", "number"),
            _field("Battery Life", "text"),
            _field("Screen Size", "number"),
            _field("Storage", "select", False, ["16GB", "32GB", "64GB", "128GB", "256GB", "512GB", "1TB"]),
            _field("Condition", "select", True, ["New", "Refurbished", "Used"]),
        ],
    },
    {
        "name": "Grocery Store",
        "description": "Food and grocery items",
        "fields": [
            _field(
                "Product Type",
                "select",
                True,
                ["Fruits", "Vegetables", "Dairy", "Meat", "Beverages", "Snacks", "Frozen"],
            ),
            _field("Expiry Date", "date", True),
            _field("Weight", "number"),
            _field("Unit", "select", False, ["kg", "grams", "liters", "pieces", "packets"]),
            _field("Organic", "select", False, ["Yes", "No"]),
            _field("Storage Type", "select", False, ["Room Temperature", "Refrigerated", "Frozen"]),
        ],
    },
]


def seed_plans(db) -> int:
    existing = {plan.name for plan in db.execute(select(Plan)).scalars().all()}
    created = 0
    for definition in DEFAULT_PLANS:
        if definition["name"] in existing:
            continue
        values = dict(definition)
        values["features"] = list(values["features"])
        values["allowed_features"] = list(values["allowed_features"])
        db.add(Plan(status="active", **values))
        created += 1
    return created


def seed_business_types(db) -> int:
    existing = {business_type.name for business_type in db.execute(select(BusinessType)).scalars().all()}
    created = 0
    for definition in DEFAULT_BUSINESS_TYPES:
        if definition["name"] in existing:
            continue
        db.add(
            BusinessType(
                name=definition["name"],
                description=definition["description"],
                fields=[dict(field) for field in definition["fields"]],
            )
        )
        created += 1
    return created


def _get_or_create_superadmin(db):
    user = db.execute(select(User).where(User.username == settings.SUPERADMIN_USERNAME)).scalars().first()
    if user:
        return user
    user = User(
        tenant_id=None,
        username=settings.SUPERADMIN_USERNAME,
        email=settings.SUPERADMIN_EMAIL,
        hashed_password=get_password_hash(settings.SUPERADMIN_PASSWORD),
        role="SUPERADMIN",
        status="active",
        is_active=True,
    )
    db.add(user)
    return user


def run_seed(db):
    seed_plans(db)
    seed_business_types(db)
    _get_or_create_superadmin(db)
    db.commit()


if __name__ == "__main__":
    from app.shopdesk.db.session import SessionLocal

    with SessionLocal() as session:
        run_seed(session)
