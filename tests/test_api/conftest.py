"""
API test fixtures providing pre-created database records.
"""
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from tests.factories import make_attachment, make_component, make_mower, make_part


@pytest_asyncio.fixture
async def sample_mower(db_session: AsyncSession):
    """Create a sample mower in the database."""
    mower = make_mower(make="Toro", model="TimeCutter", serial_number="TC-001")
    db_session.add(mower)
    await db_session.commit()
    return mower


@pytest_asyncio.fixture
async def sample_component(db_session: AsyncSession, sample_mower):
    """Create an engine installed on the sample mower."""
    component = make_component(mower_id=sample_mower.id)
    db_session.add(component)
    await db_session.commit()
    return component


@pytest_asyncio.fixture
async def sample_part(db_session: AsyncSession):
    """Create a sample inventory part."""
    part = make_part()
    db_session.add(part)
    await db_session.commit()
    return part


@pytest_asyncio.fixture
async def sample_attachment(db_session: AsyncSession, sample_mower):
    """Create a PDF attached to the sample mower."""
    attachment = make_attachment(mower_id=sample_mower.id, file_name="manual.pdf")
    db_session.add(attachment)
    await db_session.commit()
    return attachment
