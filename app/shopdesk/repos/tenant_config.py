from datetime import datetime

from sqlalchemy import select

from app.shopdesk.db.models import DropdownData, TenantFieldConfig, TenantSettings


DEFAULT_DROPDOWN_DATA = {
    "categories": ["T-Shirts", "Jeans", "Shirts", "Dresses", "Jackets", "Accessories", "Sarees", "Kurtis", "Anarkali"],
    "sizes": ["XS", "S", "M", "L", "XL", "XXL", "Free Size"],
    "colors": ["Red", "Blue", "Green", "Yellow", "Black", "White", "Pink", "Purple", "Orange", "Brown"],
    "materials": ["Cotton", "Silk", "Polyester", "Linen", "Wool", "Denim", "Chiffon", "Georgette"],
    "brands": ["Zara", "H&M", "Uniqlo", "Forever 21", "Mango", "Biba", "W", "Aurelia"],
    "suppliers": ["Fashion Hub Pvt Ltd", "Style Mart Suppliers", "Trendy Textiles", "Elite Fashion House"],
}


class TenantSettingsRepository:
    def __init__(self, db):
        self.db = db

    def get(self, tenant_id):
        stmt = select(TenantSettings).where(TenantSettings.tenant_id == tenant_id)
        return self.db.execute(stmt).scalars().first()

    def get_or_create(self, tenant_id, *, store_name: str | None = None) -> TenantSettings:
        settings_row = self.get(tenant_id)
        if settings_row is not None:
            return settings_row
        settings_row = TenantSettings(
            tenant_id=tenant_id,
            store_name=store_name or "My Store",
            tax_rate=0,
            bill_prefix="BILL",
            bill_counter=1,
            discount_mode=False,
            bill_format="professional",
        )
        self.db.add(settings_row)
        self.db.commit()
        self.db.refresh(settings_row)
        return settings_row

    def update(self, settings_row: TenantSettings) -> TenantSettings:
        settings_row.updated_at = datetime.utcnow()
        self.db.add(settings_row)
        self.db.commit()
        self.db.refresh(settings_row)
        return settings_row


class TenantFieldConfigRepository:
    def __init__(self, db):
        self.db = db

    def get(self, tenant_id):
        stmt = select(TenantFieldConfig).where(TenantFieldConfig.tenant_id == tenant_id)
        return self.db.execute(stmt).scalars().first()

    def upsert(self, tenant_id, *, business_type: str | None, fields: list[dict]) -> TenantFieldConfig:
        config = self.get(tenant_id)
        if config is None:
            config = TenantFieldConfig(tenant_id=tenant_id)
        config.business_type = business_type
        config.fields = list(fields)
        config.updated_at = datetime.utcnow()
        self.db.add(config)
        self.db.commit()
        self.db.refresh(config)
        return config


class DropdownDataRepository:
    def __init__(self, db):
        self.db = db

    def get_or_create(self, tenant_id) -> DropdownData:
        stmt = select(DropdownData).where(DropdownData.tenant_id == tenant_id)
        data = self.db.execute(stmt).scalars().first()
        if data is not None:
            return data
        data = DropdownData(tenant_id=tenant_id, **{key: list(values) for key, values in DEFAULT_DROPDOWN_DATA.items()})
        self.db.add(data)
        self.db.commit()
        self.db.refresh(data)
        return data

    def update(self, data: DropdownData) -> DropdownData:
        data.updated_at = datetime.utcnow()
        self.db.add(data)
        self.db.commit()
        self.db.refresh(data)
        return data
