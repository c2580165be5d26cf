"""
Demo dataset seeded for the recording.

Column names follow the app's tables. The scenes rely on these rows:
the client card, the connected sources, the warehouse and report cards
and the lineage graph.
"""

CLIENT = {
    "name": "Acme Marketing Co.",
    "email": "reports@acmemarketing.com",
    "industry": "Marketing Agency",
    "status": "active",
}

SOURCES = [
    {
        "name": "Meta Ads - Acme",
        "platform": "meta_ads",
        "source_type": "api",
        "connection_method": "oauth",
        "refresh_frequency": "daily",
        "status": "connected",
    },
    {
        "name": "Google Ads - Acme",
        "platform": "google_ads",
        "source_type": "api",
        "connection_method": "oauth",
        "refresh_frequency": "daily",
        "status": "connected",
    },
    {
        "name": "GA4 - Acme Website",
        "platform": "ga4",
        "source_type": "api",
        "connection_method": "oauth",
        "refresh_frequency": "daily",
        "status": "connected",
    },
    {
        "name": "Shopify - Acme Store",
        "platform": "shopify",
        "source_type": "api",
        "connection_method": "api_key",
        "refresh_frequency": "daily",
        "status": "connected",
    },
]

WAREHOUSE = {
    "name": "Acme Performance Dashboard",
    "platforms": ["meta_ads", "google_ads", "ga4", "shopify"],
    "field_selections": {
        "meta_ads": ["date", "campaign_name", "spend", "impressions", "clicks", "conversions"],
        "google_ads": ["date", "campaign_name", "cost", "impressions", "clicks", "conversions"],
        "ga4": ["date", "sessions", "users", "page_views", "transactions", "revenue"],
        "shopify": ["date", "orders", "total_sales", "average_order_value"],
    },
    "include_blended_data": True,
}

KPIS = [
    {
        "name": "Total Ad Spend",
        "category": "revenue",
        "reporting_frequency": "weekly",
        "target_value": "$50,000",
        "current_value": 47500,
        "metric": "spend",
        "format": "currency",
    },
    {
        "name": "ROAS",
        "category": "efficiency",
        "reporting_frequency": "weekly",
        "target_value": "4.0x",
        "current_value": 3.8,
        "metric": "roas",
        "format": "decimal",
    },
    {
        "name": "Conversion Rate",
        "category": "conversion",
        "reporting_frequency": "daily",
        "target_value": "3.5%",
        "current_value": 3.2,
        "metric": "conversion_rate",
        "format": "percentage",
    },
]

ETL_PROCESSES = [
    {
        "name": "Meta Ads Daily Sync",
        "orchestrator": "manual",
        "status": "active",
        "transform_description": "Daily import of Meta Ads performance data",
        "schedule": "0 6 * * *",
    },
    {
        "name": "Google Ads Daily Sync",
        "orchestrator": "manual",
        "status": "active",
        "transform_description": "Daily import of Google Ads performance data",
        "schedule": "0 6 * * *",
    },
    {
        "name": "Revenue Blending Pipeline",
        "orchestrator": "custom",
        "status": "active",
        "transform_description": "Combines Shopify revenue with ad platform data",
        "schedule": "0 8 * * *",
    },
]

REPORT = {
    "name": "Weekly Performance Report",
    "type": "performance",
    "frequency": "weekly",
    "recipients": "reports@acmemarketing.com",
    "delivery_format": "pdf",
    "is_scheduled": True,
    "visualization_config": {
        "kpis": [
            {"metric": "spend", "label": "Ad Spend", "format": "currency"},
            {"metric": "roas", "label": "ROAS", "format": "decimal"},
            {"metric": "conversions", "label": "Conversions", "format": "number"},
        ],
        "charts": [
            {"type": "line", "metric": "spend", "label": "Spend Trend"},
            {"type": "bar", "metric": "conversions", "label": "Conversions by Platform"},
        ],
    },
    "schedule_config": {
        "frequency": "weekly",
        "dayOfWeek": 1,
        "time": "09:00",
        "timezone": "America/New_York",
    },
    "date_range": "last_7_days",
}
