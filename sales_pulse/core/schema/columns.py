"""
Canonical column names and Spark schemas for branch sales data.

Raw ERP exports use title-case headers with spaces ("Posting Date");
inside the pipeline every column is addressed by its canonical
snake_case name.
"""

from pyspark.sql.types import (
    DataType,
    DateType,
    DecimalType,
    IntegerType,
    StringType,
    StructField,
    StructType,
)

SOURCE_TABLE = "source_table"
SOURCE_ROW = "source_row"
LINEAGE_COLUMNS = [SOURCE_TABLE, SOURCE_ROW]

BRANCH = "branch"
TECHNICIAN_NAME = "technician_name"
VEHICLE_TYPE = "vehicle_type"
ITEM_CODE = "item_code"
ITEM_NAME = "item_name"
ITEM_GROUP = "item_group"
DESCRIPTION = "description"
INVOICE = "invoice"
POSTING_DATE = "posting_date"
CUSTOMER_GROUP = "customer_group"
CUSTOMER_ID = "customer_id"
CUSTOMER_NAME = "customer_name"
RECEIVABLE_ACCOUNT = "receivable_account"
COMPANY = "company"
INCOME_ACCOUNT = "income_account"
COST_CENTER = "cost_center"
PAYMENT_MODE = "payment_mode"
STOCK_QTY = "stock_qty"
STOCK_UOM = "stock_uom"
RATE = "rate"
AMOUNT = "amount"
CGST_RATE = "cgst_rate"
CGST_AMOUNT = "cgst_amount"
SGST_RATE = "sgst_rate"
SGST_AMOUNT = "sgst_amount"
TOTAL_TAX = "total_tax"
OTHER_CHARGES = "other_charges"
TOTAL = "total"
ITEM_CATEGORY = "item_category"

# Raw ERP header -> canonical name
HEADER_ALIASES: dict[str, str] = {
    "Branch": BRANCH,
    "Technician Name": TECHNICIAN_NAME,
    "Vehicle Type": VEHICLE_TYPE,
    "Item Code": ITEM_CODE,
    "Item Name": ITEM_NAME,
    "Item Group": ITEM_GROUP,
    "Description": DESCRIPTION,
    "Invoice": INVOICE,
    "Posting Date": POSTING_DATE,
    "Customer Group": CUSTOMER_GROUP,
    "Customer": CUSTOMER_ID,
    "Customer Name": CUSTOMER_NAME,
    "Receivable Account": RECEIVABLE_ACCOUNT,
    "Company": COMPANY,
    "Income Account": INCOME_ACCOUNT,
    "Cost Center": COST_CENTER,
    "Mode Of Payment": PAYMENT_MODE,
    "Stock Qty": STOCK_QTY,
    "Stock UOM": STOCK_UOM,
    "Rate": RATE,
    "Amount": AMOUNT,
    "Output Tax CGST Rate": CGST_RATE,
    "Output Tax CGST Amount": CGST_AMOUNT,
    "Output Tax SGST Rate": SGST_RATE,
    "Output Tax SGST Amount": SGST_AMOUNT,
    "Total Tax": TOTAL_TAX,
    "Total Other Charges": OTHER_CHARGES,
    "Total": TOTAL,
}

# Order of the downstream contract, item_category excluded
UNIFIED_COLUMNS: list[str] = [
    BRANCH,
    TECHNICIAN_NAME,
    VEHICLE_TYPE,
    ITEM_CODE,
    ITEM_NAME,
    ITEM_GROUP,
    DESCRIPTION,
    INVOICE,
    POSTING_DATE,
    CUSTOMER_GROUP,
    CUSTOMER_ID,
    CUSTOMER_NAME,
    RECEIVABLE_ACCOUNT,
    COMPANY,
    INCOME_ACCOUNT,
    COST_CENTER,
    PAYMENT_MODE,
    STOCK_QTY,
    STOCK_UOM,
    RATE,
    AMOUNT,
    CGST_RATE,
    CGST_AMOUNT,
    SGST_RATE,
    SGST_AMOUNT,
    TOTAL_TAX,
    OTHER_CHARGES,
    TOTAL,
]

FINAL_COLUMNS: list[str] = UNIFIED_COLUMNS + [ITEM_CATEGORY]

MONETARY_COLUMNS: list[str] = [RATE, AMOUNT, TOTAL_TAX, OTHER_CHARGES, TOTAL]

# Columns the sanitizer types; everything else stays text
TYPED_COLUMNS: dict[str, DataType] = {
    POSTING_DATE: DateType(),
    STOCK_QTY: DecimalType(12, 3),
    RATE: DecimalType(10, 2),
    AMOUNT: DecimalType(12, 2),
    TOTAL_TAX: DecimalType(12, 2),
    OTHER_CHARGES: DecimalType(12, 2),
    TOTAL: DecimalType(12, 2),
}


def canonical_name(header: str) -> str:
    """
    Map a raw header to its canonical column name.

    Known ERP headers use the alias table; anything else is lower-cased
    with runs of spaces and dashes collapsed to underscores.
    """
    stripped = header.strip()
    if stripped in HEADER_ALIASES:
        return HEADER_ALIASES[stripped]
    if stripped in HEADER_ALIASES.values():
        return stripped
    return "_".join(stripped.lower().replace("-", " ").split())


def cleaned_schema(columns: list[str], typed: dict[str, DataType] | None = None) -> StructType:
    """
    Build the schema of the cleaned relation for the given column order.

    Columns listed in typed get that type (the contract types by default);
    the row number is an integer; everything else is text.
    """
    typed = TYPED_COLUMNS if typed is None else typed
    fields = []
    for name in columns:
        if name == SOURCE_ROW:
            fields.append(StructField(name, IntegerType(), False))
        else:
            fields.append(StructField(name, typed.get(name, StringType()), True))
    return StructType(fields)


def final_schema() -> StructType:
    """Schema of the final relation exposed to reporting consumers."""
    fields = [
        StructField(name, TYPED_COLUMNS.get(name, StringType()), name != BRANCH)
        for name in UNIFIED_COLUMNS
    ]
    fields.append(StructField(ITEM_CATEGORY, StringType(), False))
    return StructType(fields)
