"""JSON shapes the extraction prompt asks the LLM to fill, per document type."""

_IDENTITY = """  "taxpayer_name": "{person} full name",
  "taxpayer_ssn": "{person} SSN or TIN (format: XXX-XX-XXXX)",
  "business_name": "{business} name",
  "business_ein": "{business} EIN (format: XX-XXXXXXX)","""

_ADDRESS = """  "address": {
    "street": "street",
    "city": "city",
    "state": "state",
    "zip_code": "zip code"
  }"""

W2_SCHEMA = f"""{{
{_IDENTITY.format(person="employee", business="employer")}
  "wages": "box 1 wages as number",
  "federal_tax_withheld": "box 2 federal income tax withheld as number",
  "social_security_wages": "box 3 social security wages as number",
  "medicare_wages": "box 5 medicare wages as number",
  "tips": "box 7 social security tips as number",
{_ADDRESS}
}}"""

_FORM_1099_BOXES = {
    "1099-NEC": '  "non_employee_compensation": "box 1 nonemployee compensation as number",\n'
    '  "federal_income_tax_withheld": "box 4 federal income tax withheld as number"',
    "1099-MISC": '  "other_income": "box 3 other income as number",\n'
    '  "federal_income_tax_withheld": "box 4 federal income tax withheld as number"',
    "1099-INT": '  "interest_income": "box 1 interest income as number",\n'
    '  "federal_income_tax_withheld": "box 4 federal income tax withheld as number"',
    "1099-DIV": '  "dividends": "box 1a total ordinary dividends as number",\n'
    '  "federal_income_tax_withheld": "box 4 federal income tax withheld as number"',
}

TAX_RETURN_SCHEMA = f"""{{
{_IDENTITY.format(person="primary taxpayer", business="business (Schedule C)")}
  "spouse_name": "spouse full name if filing jointly",
  "spouse_ssn": "spouse SSN (format: XXX-XX-XXXX)",
  "wages": "wages, salaries, tips as number",
  "gross_receipts": "Schedule C line 1 gross receipts as number",
  "total_expenses": "Schedule C line 28 total expenses as number",
  "net_profit": "Schedule C line 31 net profit or loss as number",
  "capital_gains": "Schedule D net capital gain or loss as number",
  "standard_deduction": "standard deduction as number",
  "itemized_deductions": {{"deduction name": "amount as number"}},
  "tax_credits": {{"credit name": "amount as number"}},
{_ADDRESS}
}}"""

EXPENSE_SCHEMA = """{
  "business_name": "vendor/merchant name",
  "amount": "total amount as number",
  "date": "transaction date",
  "category": "expense category (meals, office supplies, travel, etc.)",
  "description": "description of purchase"
}"""

GENERIC_SCHEMA = """{
  "extracted_fields": {"field name": "value of any identifiable tax-related information"}
}"""

W2_TYPES = frozenset({"W-2"})
FORM_1099_TYPES = frozenset(_FORM_1099_BOXES)
TAX_RETURN_TYPES = frozenset({"1040", "Schedule-C", "Schedule-D"})
EXPENSE_TYPES = frozenset({"Receipt", "Invoice"})


def schema_for(document_type: str) -> str:
    """JSON description for the extraction prompt; unknown types get the generic one."""
    if document_type in W2_TYPES:
        return W2_SCHEMA
    if document_type in FORM_1099_TYPES:
        identity = _IDENTITY.format(person="recipient", business="payer")
        return f"{{\n{identity}\n{_FORM_1099_BOXES[document_type]}\n}}"
    if document_type in TAX_RETURN_TYPES:
        return TAX_RETURN_SCHEMA
    if document_type in EXPENSE_TYPES:
        return EXPENSE_SCHEMA
    return GENERIC_SCHEMA
