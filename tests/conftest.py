from decimal import Decimal

import pikepdf
import pytest
from pikepdf import Array, Dictionary, Name, String


def make_highlight(**extra) -> Dictionary:
    annot = Dictionary(
        Type=Name.Annot,
        Subtype=Name.Highlight,
        Rect=[100, 200, 50, 10],
        C=[1, 0, 0],
        Contents=String("note"),
    )
    for key, value in extra.items():
        annot[Name('/' + key)] = value
    return annot


@pytest.fixture
def highlight():
    return make_highlight()


@pytest.fixture
def ink():
    return Dictionary(
        Type=Name.Annot,
        Subtype=Name.Ink,
        Rect=[10, 10, 40, 40],
        InkList=[[10, 10, 20, Decimal('20.5')], [30, 30, 40, 40, 35, 35]],
    )


@pytest.fixture
def two_page_pdf():
    """Page 1 has no annotations, page 2 has one highlight."""
    pdf = pikepdf.new()
    pdf.add_blank_page()
    pdf.add_blank_page()
    annot = pdf.make_indirect(make_highlight())
    pdf.pages[1].obj[Name.Annots] = Array([annot])
    yield pdf
    pdf.close()
