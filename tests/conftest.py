"""Pytest configuration and fixtures."""

import asyncio
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from pypdf import PdfWriter
from pypdf.generic import ArrayObject, DictionaryObject, FloatObject, NameObject, NumberObject, TextStringObject

from awards.api import create_app
from awards.config import DatabaseSettings, DocumentSettings, LoggingSettings, SessionSettings, Settings, StorageSettings
from awards.db import build_engine, build_session_maker, create_tables
from awards.pipelines.rendering import FIELD_MAP, TIMESTAMP_FIELD
from awards.repositories import AdminRepository

ADMIN_USER = "admin"
ADMIN_PASSWORD = "correct horse battery staple"


def build_form_template(path: Path, fields: dict[str, str]) -> Path:
    """Write a one-page fillable PDF with a text field per entry (name -> placeholder)."""
    writer = PdfWriter()
    page = writer.add_blank_page(width=612, height=792)
    font = writer._add_object(
        DictionaryObject({
            NameObject("/Type"): NameObject("/Font"),
            NameObject("/Subtype"): NameObject("/Type1"),
            NameObject("/BaseFont"): NameObject("/Helvetica"),
            NameObject("/Encoding"): NameObject("/WinAnsiEncoding"),
        })
    )

    annots = ArrayObject()
    for i, (name, placeholder) in enumerate(fields.items()):
        top = 770 - i * 24
        widget = DictionaryObject({
            NameObject("/Type"): NameObject("/Annot"),
            NameObject("/Subtype"): NameObject("/Widget"),
            NameObject("/FT"): NameObject("/Tx"),
            NameObject("/T"): TextStringObject(name),
            NameObject("/V"): TextStringObject(placeholder),
            NameObject("/Rect"): ArrayObject(
                [FloatObject(40), FloatObject(top - 18), FloatObject(560), FloatObject(top)]
            ),
            NameObject("/DA"): TextStringObject("/Helv 10 Tf 0 g"),
            NameObject("/F"): NumberObject(4),
            NameObject("/P"): page.indirect_reference,
        })
        annots.append(writer._add_object(widget))

    page[NameObject("/Annots")] = annots
    writer.root_object[NameObject("/AcroForm")] = DictionaryObject({
        NameObject("/Fields"): ArrayObject(list(annots)),
        NameObject("/DA"): TextStringObject("/Helv 0 Tf 0 g"),
        NameObject("/DR"): DictionaryObject({
            NameObject("/Font"): DictionaryObject({NameObject("/Helv"): font}),
        }),
    })

    with open(path, "wb") as fh:
        writer.write(fh)
    return path


@pytest.fixture
def template_pdf(tmp_path):
    """Template with every mapped field except `assessment`, plus one unmapped field."""
    names = [name for name in FIELD_MAP if name != "assessment"] + [TIMESTAMP_FIELD]
    fields = {name: "PLACEHOLDER" for name in names}
    fields["reviewer_signature"] = "Pending"
    return build_form_template(tmp_path / "nomination_template.pdf", fields)


@pytest.fixture
def settings(tmp_path, template_pdf):
    return Settings(
        db=DatabaseSettings(url=f"sqlite+aiosqlite:///{tmp_path / 'app.db'}", create_tables=True),
        session=SessionSettings(secret="test-secret", cookie_secure=False),
        storage=StorageSettings(upload_dir=tmp_path / "uploads"),
        documents=DocumentSettings(template_path=template_pdf),
        logging=LoggingSettings(format="text", level="WARNING"),
    )


@pytest.fixture
def seeded_admin(settings):
    """Create the schema and one admin before the app starts."""

    async def seed():
        engine = build_engine(settings.db)
        try:
            await create_tables(engine)
            async with build_session_maker(engine)() as session:
                await AdminRepository(session).create(ADMIN_USER, ADMIN_PASSWORD)
        finally:
            await engine.dispose()

    asyncio.run(seed())
    return ADMIN_USER


@pytest.fixture
def client(settings, seeded_admin):
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_client(client):
    response = client.post("/admin/login", json={"name": ADMIN_USER, "password": ADMIN_PASSWORD})
    assert response.json() == {"success": True}
    return client


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = build_engine(DatabaseSettings(url=f"sqlite+aiosqlite:///{tmp_path / 'records.db'}"))
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine):
    async with build_session_maker(engine)() as session:
        yield session
