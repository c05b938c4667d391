"""Catalog seed data shared by the service fixtures and the file-backed race tests."""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from praxis.models.component import Component, ComponentType
from praxis.models.product import Product


@dataclass(frozen=True)
class SeededCatalog:
    cpu_am5: UUID
    cpu_am4: UUID
    board_am5: UUID
    ram_ddr5: UUID
    ram_sold_out: UUID
    psu_650: UUID
    psu_300: UUID
    gpu: UUID
    retired_cpu: UUID

    def build(self, **overrides: UUID) -> dict[str, UUID]:
        """A complete, compatible AM5 build."""
        selection = {
            "CPU": self.cpu_am5,
            "MOTHERBOARD": self.board_am5,
            "RAM": self.ram_ddr5,
            "PSU": self.psu_650,
        }
        selection.update(overrides)
        return selection

    def build_json(self, **overrides: UUID) -> dict[str, str]:
        return {slot: str(cid) for slot, cid in self.build(**overrides).items()}


@dataclass(frozen=True)
class SeededProducts:
    gaming_pc: UUID
    office_pc: UUID
    draft_pc: UUID
    archived_pc: UUID


async def seed_catalog(session: AsyncSession) -> SeededCatalog:
    """Five component types (GPU optional) and a small AM5/AM4 parts bin."""
    types = {
        code: ComponentType(code=code, name=name, sort_order=order, is_required=required)
        for code, name, order, required in (
            ("CPU", "Processor", 1, True),
            ("MOTHERBOARD", "Motherboard", 2, True),
            ("RAM", "Memory", 3, True),
            ("PSU", "Power Supply", 4, True),
            ("GPU", "Graphics Card", 5, False),
        )
    }
    session.add_all(types.values())
    await session.flush()

    def part(type_code, name, price, stock, tags, is_active=True):
        return Component(
            type_id=types[type_code].id, name=name, price=Decimal(price),
            stock_quantity=stock, compatibility_tags=tags, is_active=is_active,
            weight_kg=Decimal("1.000"),
        )

    parts = {
        "cpu_am5": part("CPU", "Ryzen 7 7700X", "300.00", 5,
                        {"socket": "AM5", "powerDraw": "120W"}),
        "cpu_am4": part("CPU", "Ryzen 5 5600", "150.00", 5,
                        {"socket": "AM4", "powerDraw": "65W"}),
        "board_am5": part("MOTHERBOARD", "B650 Tomahawk", "250.00", 3,
                          {"socket": "AM5", "memoryType": "DDR5", "powerDraw": "50W"}),
        "ram_ddr5": part("RAM", "32GB DDR5-6000", "120.00", 10,
                         {"memoryType": "DDR5", "powerDraw": "10W"}),
        "ram_sold_out": part("RAM", "64GB DDR5-6400", "240.00", 0,
                             {"memoryType": "DDR5", "powerDraw": "15W"}),
        "psu_650": part("PSU", "650W Gold", "100.00", 4, {"wattage": "650W"}),
        "psu_300": part("PSU", "300W Bronze", "40.00", 4, {"wattage": "300W"}),
        "gpu": part("GPU", "RTX 4080", "1100.00", 2, {"powerDraw": "320W"}),
        "retired_cpu": part("CPU", "Ryzen 7 7700", "280.00", 1,
                            {"socket": "AM5", "powerDraw": "65W"}, is_active=False),
    }
    session.add_all(parts.values())
    await session.commit()
    return SeededCatalog(**{key: component.id for key, component in parts.items()})


async def seed_products(session: AsyncSession, company_id: UUID) -> SeededProducts:
    """Two pre-built PCs on sale, one draft, one archived."""
    def pc(sku, name, price, stock, status, weight="12.000"):
        return Product(
            company_id=company_id, sku=sku, name=name, base_price=Decimal(price),
            stock_quantity=stock, status=status, weight_kg=Decimal(weight),
        )

    products = {
        "gaming_pc": pc("PX-GAME-01", "Praxis Gamer 7800", "1299.00", 2, "ACTIVE"),
        "office_pc": pc("PX-OFFICE-01", "Praxis Office Mini", "599.00", 5, "ACTIVE", "4.500"),
        "draft_pc": pc("PX-WS-01", "Praxis Workstation", "2499.00", 3, "DRAFT"),
        "archived_pc": pc("PX-GAME-00", "Praxis Gamer 5600", "899.00", 1, "ARCHIVED"),
    }
    session.add_all(products.values())
    await session.commit()
    return SeededProducts(**{key: product.id for key, product in products.items()})
