"""Canned SRU responses shaped like the BnF catalogue output."""

SRU_HEADER = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    '<srw:searchRetrieveResponse xmlns:srw="http://www.loc.gov/zing/srw/">'
    "<srw:version>1.2</srw:version>"
    "<srw:numberOfRecords>{count}</srw:numberOfRecords>"
    "<srw:records>"
)
SRU_FOOTER = "</srw:records></srw:searchRetrieveResponse>"

RECORD_TEMPLATE = (
    "<srw:record>"
    "<srw:recordSchema>dc</srw:recordSchema>"
    "<srw:recordPacking>xml</srw:recordPacking>"
    "<srw:recordData>"
    '<oai_dc:dc xmlns:oai_dc="http://www.openarchives.org/OAI/2.0/oai_dc/" '
    'xmlns:dc="http://purl.org/dc/elements/1.1/">'
    "{elements}"
    "</oai_dc:dc>"
    "</srw:recordData>"
    "</srw:record>"
)


def dc_record(**fields):
    """Build one record; list values produce repeated elements."""
    parts = []
    for tag, value in fields.items():
        values = value if isinstance(value, list) else [value]
        for v in values:
            parts.append(f"<dc:{tag}>{v}</dc:{tag}>")
    return RECORD_TEMPLATE.format(elements="".join(parts))


def sru_response(*records):
    body = SRU_HEADER.format(count=len(records)) + "".join(records) + SRU_FOOTER
    return body.encode("utf-8")


LES_MISERABLES = dc_record(
    identifier=["http://catalogue.bnf.fr/ark:/12148/cb30593580v", "ISBN 9782253096344"],
    title="Les misérables / Victor Hugo",
    creator=["Hugo, Victor (1802-1885). Auteur du texte", "Rosa, Guy. Éditeur scientifique"],
    publisher="Librairie générale française (Paris)",
    date="1998",
    format="2 vol. ; 18 cm",
    language="fre",
    type=["texte imprimé", "printed text"],
    rights="Catalogue BnF",
)

NO_ISBN_RECORD = dc_record(
    identifier="http://catalogue.bnf.fr/ark:/12148/cb11907966z",
    title="Hugo, Victor (1802-1885)",
    type="authority record",
)
