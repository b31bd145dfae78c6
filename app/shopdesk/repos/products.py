from sqlalchemy import delete, func, or_, select

from app.shopdesk.db.models import Product


class ProductRepository:
    def __init__(self, db):
        self.db = db

    def list_by_tenant(
        self,
        tenant_id,
        *,
        search: str | None = None,
        category: str | None = None,
        in_stock_only: bool = False,
        limit: int | None = None,
    ):
        stmt = select(Product).where(Product.tenant_id == tenant_id)
        if search:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(
                or_(
                    Product.name.ilike(pattern),
                    Product.sku.ilike(pattern),
                    Product.barcode.ilike(pattern),
                    Product.category.ilike(pattern),
                )
            )
        if category:
            stmt = stmt.where(func.lower(Product.category) == category.strip().lower())
        if in_stock_only:
            stmt = stmt.where(Product.stock > 0, Product.status == "active")
        stmt = stmt.order_by(Product.created_at.desc())
        if limit:
            stmt = stmt.limit(limit)
        return self.db.execute(stmt).scalars().all()

    def count_by_tenant(self, tenant_id) -> int:
        stmt = select(func.count()).select_from(Product).where(Product.tenant_id == tenant_id)
        return self.db.execute(stmt).scalar_one()

    def get_in_tenant(self, product_id, tenant_id):
        stmt = select(Product).where(Product.id == product_id, Product.tenant_id == tenant_id)
        return self.db.execute(stmt).scalars().first()

    def get_many_in_tenant(self, product_ids: list, tenant_id) -> dict:
        if not product_ids:
            return {}
        stmt = select(Product).where(Product.tenant_id == tenant_id, Product.id.in_(product_ids))
        return {product.id: product for product in self.db.execute(stmt).scalars().all()}

    def get_by_barcode(self, barcode: str, tenant_id):
        stmt = select(Product).where(Product.tenant_id == tenant_id, Product.barcode == barcode)
        return self.db.execute(stmt).scalars().first()

    def find_for_restock(self, tenant_id, *, sku: str | None, name: str | None):
        if sku:
            stmt = select(Product).where(Product.tenant_id == tenant_id, func.lower(Product.sku) == sku.strip().lower())
            product = self.db.execute(stmt).scalars().first()
            if product is not None:
                return product
        if name:
            stmt = select(Product).where(
                Product.tenant_id == tenant_id, func.lower(Product.name) == name.strip().lower()
            )
            return self.db.execute(stmt).scalars().first()
        return None

    def create(self, product: Product):
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return product

    def update(self, product: Product):
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return product

    def delete(self, product: Product) -> None:
        self.db.delete(product)
        self.db.commit()

    def clear_tenant(self, tenant_id) -> int:
        result = self.db.execute(delete(Product).where(Product.tenant_id == tenant_id))
        self.db.commit()
        return result.rowcount or 0

    def list_low_stock(self, tenant_id, *, default_min_stock: int):
        threshold = func.coalesce(Product.min_stock, default_min_stock)
        stmt = select(Product).where(
            Product.tenant_id == tenant_id,
            Product.stock >= 0,
            Product.stock <= threshold,
        )
        return self.db.execute(stmt.order_by(Product.stock.asc(), Product.name.asc())).scalars().all()
