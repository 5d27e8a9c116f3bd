"""
database/queries.py - Alle SQL-Abfragen als benannte Konstanten.

Zwei Gruppen:
- Extraktion: liest die drei Quelltabellen unverändert in DataFrames
  (Grundlage für die ReportEngine)
- Report-SQL: die acht Kanal-Reports in SQLite-Dialekt. Dienen als
  Gegenprobe zur Pandas-Berechnung (siehe analysis/reconciliation.py)

Spaltennamen der Report-SQL sind identisch zu den Engine-Ergebnissen.
"""

# ─────────────────────────────────────────────────────────────
# EXTRAKTION
# ─────────────────────────────────────────────────────────────

ORDERS_TABLE = """
    SELECT
        order_id,
        customer_id,
        order_date,
        online_order_flag,
        total_due
    FROM orders
    ORDER BY order_id
"""

ORDER_LINES_TABLE = """
    SELECT
        order_line_id,
        order_id,
        product_id,
        order_qty,
        line_total
    FROM order_lines
    ORDER BY order_line_id
"""

PRODUCTS_TABLE = """
    SELECT
        product_id,
        name,
        list_price
    FROM products
    ORDER BY product_id
"""

# ─────────────────────────────────────────────────────────────
# KANAL-REPORTS (Header-Umsatz total_due)
# ─────────────────────────────────────────────────────────────

REVENUE_BY_CHANNEL = """
    SELECT
        CASE WHEN online_order_flag = 1 THEN 'Online' ELSE 'In-Store' END AS sales_channel,
        SUM(total_due)                                                 AS total_revenue
    FROM orders
    GROUP BY sales_channel
"""

ORDER_COUNT_BY_CHANNEL = """
    SELECT
        CASE WHEN online_order_flag = 1 THEN 'Online' ELSE 'In-Store' END AS sales_channel,
        COUNT(order_id)                                                AS order_count
    FROM orders
    GROUP BY sales_channel
"""

AVERAGE_ORDER_VALUE_BY_CHANNEL = """
    SELECT
        CASE WHEN online_order_flag = 1 THEN 'Online' ELSE 'In-Store' END AS sales_channel,
        SUM(total_due) / COUNT(order_id)                               AS avg_order_value
    FROM orders
    GROUP BY sales_channel
"""

REPEAT_CUSTOMER_COUNT_BY_CHANNEL = """
    -- HAVING filtert auf die Bestellanzahl des Kanals, nicht je Kunde
    SELECT
        CASE WHEN online_order_flag = 1 THEN 'Online' ELSE 'In-Store' END AS sales_channel,
        COUNT(DISTINCT customer_id)                                    AS repeat_customers
    FROM orders
    GROUP BY sales_channel
    HAVING COUNT(order_id) > 1
"""

REPEAT_CUSTOMER_COUNT_BY_CHANNEL_PER_CUSTOMER = """
    SELECT
        sales_channel,
        COUNT(*) AS repeat_customers
    FROM (
        SELECT
            CASE WHEN online_order_flag = 1 THEN 'Online' ELSE 'In-Store' END AS sales_channel,
            customer_id
        FROM orders
        GROUP BY sales_channel, customer_id
        HAVING COUNT(order_id) >= 2
    ) repeaters
    GROUP BY sales_channel
"""

# ─────────────────────────────────────────────────────────────
# PRODUKT-REPORT (Positions-Umsatz line_total)
# ─────────────────────────────────────────────────────────────

PRODUCT_PERFORMANCE = """
    SELECT
        p.name                                                           AS product_name,
        SUM(l.order_qty)                                                 AS total_quantity_sold,
        SUM(l.line_total)                                                AS total_revenue,
        CASE WHEN o.online_order_flag = 1 THEN 'Online' ELSE 'In-Store' END AS sales_channel
    FROM order_lines l
    JOIN orders   o ON l.order_id   = o.order_id
    JOIN products p ON l.product_id = p.product_id
    GROUP BY p.product_id, p.name, sales_channel
    ORDER BY total_quantity_sold DESC
"""

# ─────────────────────────────────────────────────────────────
# ZEITREIHEN-REPORTS
# ─────────────────────────────────────────────────────────────

SEASONAL_TRENDS = """
    SELECT
        CAST(strftime('%Y', order_date) AS INTEGER)                    AS year,
        CAST(strftime('%m', order_date) AS INTEGER)                    AS month,
        CASE WHEN online_order_flag = 1 THEN 'Online' ELSE 'In-Store' END AS sales_channel,
        SUM(total_due)                                                 AS total_revenue,
        COUNT(order_id)                                                AS total_orders,
        SUM(total_due) / COUNT(order_id)                               AS avg_transaction_value
    FROM orders
    GROUP BY year, month, sales_channel
    ORDER BY year, month
"""

BEST_WORST_MONTH_BY_YEAR = """
    -- ROW_NUMBER mit Monat als Tie-Break: bei Gleichstand gewinnt der kleinere Monat
    WITH monthly AS (
        SELECT
            CAST(strftime('%Y', order_date) AS INTEGER) AS year,
            CAST(strftime('%m', order_date) AS INTEGER) AS month,
            SUM(total_due)                              AS revenue
        FROM orders
        GROUP BY year, month
    ),
    ranked AS (
        SELECT
            year,
            month,
            revenue,
            ROW_NUMBER() OVER (PARTITION BY year ORDER BY revenue DESC, month ASC) AS best_rank,
            ROW_NUMBER() OVER (PARTITION BY year ORDER BY revenue ASC,  month ASC) AS worst_rank
        FROM monthly
    )
    SELECT
        year,
        MAX(CASE WHEN best_rank  = 1 THEN month   END) AS best_month,
        MAX(CASE WHEN worst_rank = 1 THEN month   END) AS worst_month,
        MAX(CASE WHEN best_rank  = 1 THEN revenue END) AS best_revenue,
        MAX(CASE WHEN worst_rank = 1 THEN revenue END) AS worst_revenue
    FROM ranked
    GROUP BY year
    ORDER BY year
"""

QUARTERLY_REVENUE_BY_YEAR = """
    SELECT
        CAST(strftime('%Y', order_date) AS INTEGER) AS year,
        CASE
            WHEN CAST(strftime('%m', order_date) AS INTEGER) BETWEEN 1 AND 3  THEN 'Q1'
            WHEN CAST(strftime('%m', order_date) AS INTEGER) BETWEEN 4 AND 6  THEN 'Q2'
            WHEN CAST(strftime('%m', order_date) AS INTEGER) BETWEEN 7 AND 9  THEN 'Q3'
            ELSE 'Q4'
        END                                         AS quarter,
        SUM(total_due)                              AS total_revenue
    FROM orders
    GROUP BY year, quarter
    ORDER BY year, quarter
"""

# Report-Name → SQL (Namen wie in analysis.report_engine.REPORT_NAMES)
REPORT_QUERIES = {
    "revenue_by_channel":               REVENUE_BY_CHANNEL,
    "order_count_by_channel":           ORDER_COUNT_BY_CHANNEL,
    "average_order_value_by_channel":   AVERAGE_ORDER_VALUE_BY_CHANNEL,
    "repeat_customer_count_by_channel": REPEAT_CUSTOMER_COUNT_BY_CHANNEL,
    "product_performance":              PRODUCT_PERFORMANCE,
    "seasonal_trends":                  SEASONAL_TRENDS,
    "best_worst_month_by_year":         BEST_WORST_MONTH_BY_YEAR,
    "quarterly_revenue_by_year":        QUARTERLY_REVENUE_BY_YEAR,
}
