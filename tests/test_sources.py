"""
Tests for loading the CRM source tables.
"""

import pytest

from sales_performance.pipeline.sources import load_sources, validate_columns

PIPELINE_CSV = """opportunity_id,sales_agent,product,account,deal_stage,engage_date,close_date,close_value
1C1I7A6R,Moses Frase,GTX Plus Basic,Cancity,Won,2016-10-20,2017-03-01,1054
Z063OYW0,Darcel Schlecht,GTXPro,Isdom,Won,2016-10-25,2017-03-11,4514
EC4QE1BX,Darcel Schlecht,MG Special,Not Available,Engaging,,,
"""

TEAMS_CSV = """sales_agent,manager,regional_office
Moses Frase,Dustin Brinkmann,Central
Darcel Schlecht,Melvin Marxen,Central
"""

ACCOUNTS_CSV = """account,sector,year_established,revenue,employees,office_location,subsidiary_of
Cancity,retail,2001,718.62,2448,United States,
Isdom,medical,2002,3178.24,4540,United States,
"""

PRODUCTS_CSV = """product,series,sales_price
GTX Plus Basic,GTX,1096
MG Special,MG,55
"""


@pytest.fixture()
def csv_dir(tmp_path):
    for name, body in (
        ("sales_pipeline", PIPELINE_CSV),
        ("sales_teams", TEAMS_CSV),
        ("accounts", ACCOUNTS_CSV),
        ("products", PRODUCTS_CSV),
    ):
        (tmp_path / f"{name}.csv").write_text(body)
    return tmp_path


def test_load_csv_sources(spark, csv_dir):
    sources = load_sources(spark, source_format="csv", source_dir=str(csv_dir))

    rows = {r.opportunity_id: r for r in sources.opportunities.collect()}
    assert len(rows) == 3
    assert str(rows["1C1I7A6R"].engage_date) == "2016-10-20"
    assert rows["1C1I7A6R"].close_value == 1054.0
    assert rows["EC4QE1BX"].engage_date is None
    assert sources.agents.count() == 2
    assert sources.products.filter("product = 'MG Special'").first().sales_price == 55.0


def test_unsupported_format(spark):
    with pytest.raises(ValueError, match="Unsupported source format"):
        load_sources(spark, source_format="json")


def test_missing_required_columns(spark):
    df = spark.createDataFrame([("Moses Frase", "Dustin Brinkmann")], "sales_agent string, manager string")
    with pytest.raises(ValueError, match="regional_office"):
        validate_columns(df, "sales_teams")
