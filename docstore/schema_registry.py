"""Static mapping between logical collections/fields and the physical tables.

Column names are snake_case, logical field names are camelCase; the mapping
between the two is derived from the table allowlists so the forward and
reverse lookups are always consistent.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from docstore.errors import StoreError

logger = logging.getLogger(__name__)

ID_FIELD = "id"
LEGACY_ID_FIELD = "_id"
ID_COLUMN = "id"
OVERFLOW_COLUMN = "data"
CREATED_AT_COLUMN = "created_at"
UPDATED_AT_COLUMN = "updated_at"

_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

COLLECTION_TABLES: dict[str, str] = {
    "users": "users",
    "companies": "companies",
    "customers": "customers",
    "products": "products",
    "promotions": "promotions",
    "budgets": "budgets",
    "tradespends": "trade_spends",
    "trade_spends": "trade_spends",
    "activities": "activities",
    "notifications": "notifications",
    "reportruns": "report_runs",
    "report_runs": "report_runs",
    "vendors": "vendors",
    "campaigns": "campaigns",
    "trading_terms": "trading_terms",
    "tradingterms": "trading_terms",
    "rebates": "rebates",
    "claims": "claims",
    "deductions": "deductions",
    "approvals": "approvals",
    "data_lineage": "data_lineage",
    "forecasts": "forecasts",
    "kam_wallets": "kam_wallets",
    "import_jobs": "import_jobs",
    "simulations": "simulations",
    "business_rules_config": "business_rules_config",
    "allocations": "allocations",
    "activity_grid": "activity_grid",
    "settings": "settings",
    "baselines": "baselines",
    "baseline_periods": "baseline_periods",
    "volume_decomposition": "volume_decomposition",
    "accruals": "accruals",
    "accrual_periods": "accrual_periods",
    "accrual_journals": "accrual_journals",
    "settlements": "settlements",
    "settlement_lines": "settlement_lines",
    "settlement_payments": "settlement_payments",
    "pnl_reports": "pnl_reports",
    "pnl_line_items": "pnl_line_items",
    "budget_allocations": "budget_allocations",
    "budget_allocation_lines": "budget_allocation_lines",
    "trade_calendar_events": "trade_calendar_events",
    "trade_calendar_constraints": "trade_calendar_constraints",
    "demand_signals": "demand_signals",
    "demand_signal_sources": "demand_signal_sources",
    "scenarios": "scenarios",
    "scenario_variables": "scenario_variables",
    "scenario_results": "scenario_results",
    "promotion_optimizations": "promotion_optimizations",
    "optimization_recommendations": "optimization_recommendations",
    "optimization_constraints": "optimization_constraints",
    "customer_360_profiles": "customer_360_profiles",
    "customer_360_insights": "customer_360_insights",
    "report_templates": "report_templates",
    "saved_reports": "saved_reports",
    "report_schedules": "report_schedules",
    "rgm_initiatives": "rgm_initiatives",
    "rgm_pricing_strategies": "rgm_pricing_strategies",
    "rgm_mix_analyses": "rgm_mix_analyses",
    "rgm_growth_trackers": "rgm_growth_trackers",
    "kpi_definitions": "kpi_definitions",
    "kpi_targets": "kpi_targets",
    "kpi_actuals": "kpi_actuals",
    "executive_scorecards": "executive_scorecards",
    "calendar_events": "calendar_events",
    "calendar_conflicts": "calendar_conflicts",
    "calendar_coverage": "calendar_coverage",
}

TABLE_COLUMNS: dict[str, tuple[str, ...]] = {
    "customers": (
        "id", "company_id", "name", "code", "sap_customer_id", "customer_type", "channel", "tier",
        "status", "region", "city", "data", "created_at", "updated_at", "sub_channel",
        "segmentation", "hierarchy_1", "hierarchy_2", "hierarchy_3", "head_office",
    ),
    "products": (
        "id", "company_id", "name", "code", "sku", "barcode", "category", "subcategory", "brand",
        "unit_price", "cost_price", "status", "data", "created_at", "updated_at", "vendor",
        "sub_brand",
    ),
    "budgets": (
        "id", "company_id", "name", "year", "amount", "utilized", "budget_type", "status",
        "created_by", "data", "created_at", "updated_at", "budget_category", "scope_type",
        "deal_type", "claim_type", "product_vendor", "product_category", "product_brand",
        "product_sub_brand", "product_id", "customer_channel", "customer_sub_channel",
        "customer_segmentation", "customer_hierarchy_1", "customer_hierarchy_2",
        "customer_hierarchy_3", "customer_head_office", "customer_id",
    ),
    "promotions": (
        "id", "company_id", "name", "description", "promotion_type", "status", "start_date",
        "end_date", "sell_in_start_date", "sell_in_end_date", "budget_id", "created_by",
        "approved_by", "approved_at", "rejected_by", "rejected_at", "rejection_reason", "data",
        "created_at", "updated_at",
    ),
    "trade_spends": (
        "id", "company_id", "spend_id", "budget_id", "promotion_id", "customer_id", "product_id",
        "amount", "spend_type", "activity_type", "status", "description", "created_by",
        "approved_by", "approved_at", "rejected_by", "rejected_at", "rejection_reason", "data",
        "created_at", "updated_at",
    ),
    "users": (
        "id", "company_id", "email", "password", "first_name", "last_name", "role", "department",
        "permissions", "is_active", "login_attempts", "lock_until", "last_login", "refresh_token",
        "refresh_token_expiry", "password_changed_at", "data", "created_at", "updated_at",
    ),
    "companies": (
        "id", "name", "code", "type", "country", "currency", "timezone", "status",
        "subscription_plan", "settings", "data", "created_at", "updated_at",
    ),
    "vendors": (
        "id", "company_id", "name", "code", "vendor_type", "status", "contact_name",
        "contact_email", "contact_phone", "address", "city", "region", "country", "payment_terms",
        "tax_number", "bank_details", "data", "created_at", "updated_at",
    ),
    "campaigns": (
        "id", "company_id", "name", "description", "campaign_type", "status", "start_date",
        "end_date", "budget_amount", "spent_amount", "target_revenue", "actual_revenue",
        "target_volume", "actual_volume", "created_by", "approved_by", "approved_at", "data",
        "created_at", "updated_at",
    ),
    "trading_terms": (
        "id", "company_id", "name", "description", "term_type", "status", "customer_id",
        "start_date", "end_date", "rate", "rate_type", "threshold", "cap", "payment_frequency",
        "calculation_basis", "created_by", "approved_by", "approved_at", "data", "created_at",
        "updated_at",
    ),
    "rebates": (
        "id", "company_id", "name", "description", "rebate_type", "status", "customer_id",
        "trading_term_id", "start_date", "end_date", "rate", "rate_type", "threshold", "cap",
        "accrued_amount", "settled_amount", "calculation_basis", "settlement_frequency",
        "last_calculated_at", "created_by", "approved_by", "approved_at", "data", "created_at",
        "updated_at",
    ),
    "claims": (
        "id", "company_id", "claim_number", "claim_type", "status", "customer_id", "promotion_id",
        "rebate_id", "claimed_amount", "approved_amount", "settled_amount", "claim_date",
        "due_date", "settlement_date", "reason", "supporting_documents", "reviewed_by",
        "reviewed_at", "review_notes", "created_by", "data", "created_at", "updated_at",
    ),
    "deductions": (
        "id", "company_id", "deduction_number", "deduction_type", "status", "customer_id",
        "invoice_number", "invoice_date", "deduction_amount", "matched_amount", "remaining_amount",
        "deduction_date", "due_date", "reason_code", "reason_description", "matched_to",
        "reviewed_by", "reviewed_at", "review_notes", "created_by", "data", "created_at",
        "updated_at",
    ),
    "approvals": (
        "id", "company_id", "entity_type", "entity_id", "entity_name", "amount", "status",
        "priority", "requested_by", "requested_at", "assigned_to", "approved_by", "approved_at",
        "rejected_by", "rejected_at", "rejection_reason", "comments", "due_date", "sla_hours",
        "escalated_to", "escalated_at", "data", "created_at", "updated_at",
    ),
    "activities": (
        "id", "company_id", "user_id", "action", "entity_type", "entity_id", "description", "data",
        "created_at",
    ),
    "notifications": (
        "id", "company_id", "user_id", "title", "message", "type", "read", "data", "created_at",
    ),
    "business_rules_config": (
        "id", "company_id", "category", "rules", "updated_by", "data", "created_at", "updated_at",
    ),
    "allocations": (
        "id", "company_id", "name", "budget_id", "customer_id", "product_id", "amount", "status",
        "allocation_type", "created_by", "data", "created_at", "updated_at",
    ),
    "settings": (
        "id", "company_id", "key", "value", "data", "created_at", "updated_at",
    ),
    "simulations": (
        "id", "company_id", "name", "description", "simulation_type", "status", "config",
        "results", "scenarios", "constraints", "created_by", "applied_to", "parameters", "data",
        "created_at", "updated_at",
    ),
    "forecasts": (
        "id", "company_id", "name", "forecast_type", "status", "period_type", "start_period",
        "end_period", "base_year", "forecast_year", "total_forecast", "total_actual", "variance",
        "variance_percent", "method", "confidence_level", "created_by", "data", "created_at",
        "updated_at",
    ),
    "activity_grid": (
        "id", "company_id", "activity_name", "activity_type", "status", "start_date", "end_date",
        "customer_id", "product_id", "vendor_id", "budget_allocated", "budget_spent",
        "performance", "notes", "source_type", "source_id", "created_by", "created_at",
        "updated_at",
    ),
    "data_lineage": (
        "id", "company_id", "entity_type", "entity_id", "field_name", "old_value", "new_value",
        "change_type", "source", "source_details", "changed_by", "changed_at", "data",
    ),
    "report_runs": (
        "id", "company_id", "report_type", "status", "date_range", "filters", "data", "created_by",
        "completed_at", "created_at", "updated_at",
    ),
    "saved_views": (
        "id", "company_id", "user_id", "name", "entity_type", "filters", "columns", "sort_by",
        "sort_order", "is_default", "created_at", "updated_at",
    ),
    "data_quality_issues": (
        "id", "company_id", "entity_type", "entity_id", "field_name", "issue_type", "severity",
        "message", "resolved", "resolved_at", "resolved_by", "created_at",
    ),
    "kam_wallets": (
        "id", "company_id", "user_id", "year", "quarter", "month", "allocated_amount",
        "utilized_amount", "committed_amount", "available_amount", "status", "data", "created_at",
        "updated_at",
    ),
    "import_jobs": (
        "id", "company_id", "import_type", "status", "file_name", "file_url", "total_rows",
        "processed_rows", "success_rows", "error_rows", "errors", "mapping", "options",
        "started_at", "completed_at", "created_by", "created_at", "updated_at",
    ),
    "transactions": (
        "id", "company_id", "transaction_number", "transaction_type", "status", "customer_id",
        "product_id", "amount", "description", "reference", "payment_reference", "created_by",
        "approved_by", "approved_at", "rejected_by", "rejected_at", "rejection_reason",
        "settled_at", "data", "created_at", "updated_at",
    ),
    "alerts": (
        "id", "company_id", "alert_type", "severity", "status", "title", "message", "entity_type",
        "entity_id", "acknowledged_by", "acknowledged_at", "dismissed_at", "data", "created_at",
        "updated_at",
    ),
    "customer_assignments": (
        "id", "company_id", "customer_id", "user_id", "role", "status", "data", "created_at",
        "updated_at",
    ),
    "announcements": (
        "id", "company_id", "title", "content", "category", "priority", "status",
        "target_audience", "published_at", "created_by", "data", "created_at", "updated_at",
    ),
    "policies": (
        "id", "company_id", "title", "content", "category", "version", "status", "effective_date",
        "published_at", "created_by", "data", "created_at", "updated_at",
    ),
    "courses": (
        "id", "company_id", "title", "description", "category", "difficulty", "duration_minutes",
        "status", "content_url", "created_by", "data", "created_at", "updated_at",
    ),
    "games": (
        "id", "company_id", "title", "description", "game_type", "difficulty", "points", "status",
        "created_by", "data", "created_at", "updated_at",
    ),
    "regions": (
        "id", "company_id", "name", "code", "status", "data", "created_at", "updated_at",
    ),
    "districts": (
        "id", "company_id", "name", "region_id", "region_name", "code", "status", "data",
        "created_at", "updated_at",
    ),
    "baselines": (
        "id", "company_id", "name", "description", "status", "baseline_type", "calculation_method",
        "granularity", "customer_id", "product_id", "category", "brand", "channel", "region",
        "start_date", "end_date", "base_year", "periods_used", "seasonality_enabled",
        "trend_enabled", "outlier_removal_enabled", "outlier_threshold", "confidence_level",
        "total_base_volume", "total_base_revenue", "avg_weekly_volume", "avg_weekly_revenue",
        "seasonality_index", "trend_coefficient", "r_squared", "mape", "created_by", "approved_by",
        "approved_at", "data", "created_at", "updated_at",
    ),
    "baseline_periods": (
        "id", "company_id", "baseline_id", "period_start", "period_end", "period_number",
        "period_label", "base_volume", "base_revenue", "base_units", "seasonality_factor",
        "trend_adjustment", "actual_volume", "actual_revenue", "variance_volume",
        "variance_revenue", "variance_pct", "is_promoted", "promotion_id", "incremental_volume",
        "incremental_revenue", "data", "created_at", "updated_at",
    ),
    "volume_decomposition": (
        "id", "company_id", "baseline_id", "promotion_id", "customer_id", "product_id",
        "period_start", "period_end", "total_volume", "base_volume", "incremental_volume",
        "cannibalization_volume", "pantry_loading_volume", "halo_volume", "pull_forward_volume",
        "post_promo_dip_volume", "total_revenue", "base_revenue", "incremental_revenue",
        "trade_spend", "incremental_profit", "roi", "lift_pct", "efficiency_score", "data",
        "created_at", "updated_at",
    ),
    "accruals": (
        "id", "company_id", "name", "description", "status", "accrual_type", "calculation_method",
        "frequency", "customer_id", "product_id", "promotion_id", "budget_id", "trading_term_id",
        "baseline_id", "gl_account", "cost_center", "start_date", "end_date", "rate", "rate_type",
        "base_amount", "accrued_amount", "posted_amount", "reversed_amount", "settled_amount",
        "remaining_amount", "currency", "last_calculated_at", "last_posted_at", "auto_calculate",
        "auto_post", "created_by", "approved_by", "approved_at", "data", "created_at",
        "updated_at",
    ),
    "accrual_periods": (
        "id", "company_id", "accrual_id", "period_start", "period_end", "period_number",
        "period_label", "base_sales", "accrual_rate", "calculated_amount", "adjusted_amount",
        "posted_amount", "variance_amount", "variance_pct", "status", "posted_at", "posted_by",
        "gl_journal_ref", "data", "created_at", "updated_at",
    ),
    "accrual_journals": (
        "id", "company_id", "accrual_id", "accrual_period_id", "journal_type", "journal_date",
        "debit_account", "credit_account", "amount", "currency", "reference", "narration",
        "status", "posted_by", "reversed_by", "reversed_at", "reversal_journal_id", "data",
        "created_at", "updated_at",
    ),
    "settlements": (
        "id", "company_id", "settlement_number", "name", "description", "status",
        "settlement_type", "customer_id", "promotion_id", "accrual_id", "claim_id", "deduction_id",
        "budget_id", "gl_account", "cost_center", "settlement_date", "due_date", "accrued_amount",
        "claimed_amount", "approved_amount", "settled_amount", "variance_amount", "variance_pct",
        "payment_method", "payment_reference", "payment_date", "currency", "notes", "created_by",
        "approved_by", "approved_at", "processed_by", "processed_at", "data", "created_at",
        "updated_at",
    ),
    "settlement_lines": (
        "id", "company_id", "settlement_id", "line_number", "product_id", "product_name",
        "category", "description", "quantity", "unit_price", "accrued_amount", "claimed_amount",
        "approved_amount", "adjustment_amount", "adjustment_reason", "settled_amount", "status",
        "data", "created_at", "updated_at",
    ),
    "settlement_payments": (
        "id", "company_id", "settlement_id", "payment_type", "payment_date", "amount", "currency",
        "reference", "bank_reference", "erp_reference", "status", "notes", "created_by",
        "approved_by", "approved_at", "data", "created_at", "updated_at",
    ),
    "pnl_reports": (
        "id", "company_id", "name", "description", "status", "report_type", "period_type",
        "start_date", "end_date", "customer_id", "promotion_id", "product_id", "category",
        "channel", "region", "gross_sales", "trade_spend", "net_sales", "cogs", "gross_profit",
        "gross_margin_pct", "accruals", "settlements", "claims", "deductions", "net_trade_cost",
        "net_profit", "net_margin_pct", "budget_amount", "budget_variance", "budget_variance_pct",
        "roi", "currency", "generated_at", "generated_by", "data", "created_at", "updated_at",
    ),
    "pnl_line_items": (
        "id", "company_id", "report_id", "line_type", "line_label", "sort_order", "customer_id",
        "customer_name", "promotion_id", "promotion_name", "product_id", "product_name",
        "period_start", "period_end", "gross_sales", "trade_spend", "net_sales", "cogs",
        "gross_profit", "gross_margin_pct", "accruals", "settlements", "claims", "deductions",
        "net_trade_cost", "net_profit", "net_margin_pct", "budget_amount", "budget_variance",
        "roi", "data", "created_at", "updated_at",
    ),
    "budget_allocations": (
        "id", "company_id", "name", "description", "status", "allocation_method", "budget_id",
        "source_amount", "allocated_amount", "remaining_amount", "utilized_amount",
        "utilization_pct", "fiscal_year", "period_type", "start_date", "end_date", "dimension",
        "currency", "locked", "locked_by", "locked_at", "approved_by", "approved_at", "notes",
        "created_by", "data", "created_at", "updated_at",
    ),
    "budget_allocation_lines": (
        "id", "company_id", "allocation_id", "line_number", "dimension_type", "dimension_id",
        "dimension_name", "parent_line_id", "level", "source_amount", "allocated_amount",
        "allocated_pct", "utilized_amount", "committed_amount", "remaining_amount",
        "utilization_pct", "prior_year_amount", "prior_year_growth_pct", "forecast_amount",
        "variance_amount", "variance_pct", "status", "notes", "data", "created_at", "updated_at",
    ),
    "trade_calendar_events": (
        "id", "company_id", "name", "description", "event_type", "status", "start_date",
        "end_date", "all_day", "recurrence", "color", "customer_id", "customer_name", "product_id",
        "product_name", "promotion_id", "budget_id", "channel", "region", "category", "brand",
        "planned_spend", "actual_spend", "planned_volume", "actual_volume", "planned_revenue",
        "actual_revenue", "roi", "lift_pct", "priority", "tags", "notes", "created_by",
        "approved_by", "approved_at", "data", "created_at", "updated_at",
    ),
    "trade_calendar_constraints": (
        "id", "company_id", "name", "description", "constraint_type", "status", "scope",
        "start_date", "end_date", "day_of_week", "customer_id", "customer_name", "product_id",
        "product_name", "channel", "region", "category", "brand", "max_concurrent_promotions",
        "max_spend_amount", "min_gap_days", "max_discount_pct", "min_lead_time_days",
        "require_approval", "priority", "violation_action", "notes", "created_by", "data",
        "created_at", "updated_at",
    ),
    "demand_signals": (
        "id", "company_id", "source_id", "source_name", "signal_type", "signal_date",
        "period_start", "period_end", "granularity", "customer_id", "customer_name", "product_id",
        "product_name", "category", "brand", "channel", "region", "store_id", "store_name",
        "units_sold", "revenue", "volume", "avg_price", "baseline_units", "baseline_revenue",
        "incremental_units", "incremental_revenue", "lift_pct", "promo_flag", "promotion_id",
        "inventory_level", "out_of_stock_flag", "distribution_pct", "price_index",
        "competitor_price", "market_share_pct", "weather_condition", "temperature",
        "sentiment_score", "trend_direction", "confidence", "anomaly_flag", "anomaly_type",
        "notes", "data", "created_at", "updated_at",
    ),
    "demand_signal_sources": (
        "id", "company_id", "name", "description", "source_type", "provider", "frequency",
        "status", "last_sync_at", "next_sync_at", "record_count", "config", "credentials",
        "created_by", "data", "created_at", "updated_at",
    ),
    "scenarios": (
        "id", "company_id", "name", "description", "scenario_type", "status", "base_promotion_id",
        "base_promotion_name", "base_budget_id", "base_budget_name", "customer_id",
        "customer_name", "product_id", "product_name", "category", "brand", "channel", "region",
        "start_date", "end_date", "baseline_revenue", "baseline_units", "baseline_margin_pct",
        "projected_revenue", "projected_units", "projected_spend", "projected_roi",
        "projected_lift_pct", "projected_margin_pct", "projected_incremental_revenue",
        "projected_incremental_units", "projected_net_profit", "confidence_score", "risk_level",
        "recommendation", "comparison_scenario_id", "is_favorite", "tags", "notes", "created_by",
        "data", "created_at", "updated_at",
    ),
    "scenario_variables": (
        "id", "company_id", "scenario_id", "variable_name", "variable_type", "category",
        "base_value", "adjusted_value", "change_pct", "min_value", "max_value", "step_size",
        "unit", "impact_on_revenue", "impact_on_units", "impact_on_roi", "sensitivity",
        "sort_order", "notes", "data", "created_at", "updated_at",
    ),
    "scenario_results": (
        "id", "company_id", "scenario_id", "result_type", "period", "metric_name", "metric_value",
        "baseline_value", "variance", "variance_pct", "confidence_low", "confidence_high",
        "confidence_pct", "sort_order", "data", "created_at", "updated_at",
    ),
    "promotion_optimizations": (
        "id", "company_id", "name", "description", "optimization_type", "status", "objective",
        "customer_id", "customer_name", "product_id", "product_name", "category", "brand",
        "channel", "region", "start_date", "end_date", "budget_limit", "min_roi_threshold",
        "min_lift_threshold", "max_discount_pct", "baseline_revenue", "baseline_units",
        "baseline_margin_pct", "optimized_spend", "optimized_revenue", "optimized_roi",
        "optimized_lift_pct", "optimized_margin_pct", "optimized_incremental_revenue",
        "optimized_net_profit", "improvement_pct", "confidence_score", "model_version",
        "run_count", "last_run_at", "created_by", "notes", "data", "created_at", "updated_at",
    ),
    "optimization_recommendations": (
        "id", "company_id", "optimization_id", "recommendation_type", "priority", "title",
        "description", "current_value", "recommended_value", "change_pct",
        "expected_impact_revenue", "expected_impact_roi", "expected_impact_units",
        "expected_impact_margin", "confidence", "risk_level", "category", "metric_name",
        "rationale", "action_taken", "applied_at", "sort_order", "data", "created_at",
        "updated_at",
    ),
    "optimization_constraints": (
        "id", "company_id", "optimization_id", "constraint_name", "constraint_type", "operator",
        "threshold_value", "current_value", "is_violated", "severity", "sort_order", "notes",
        "data", "created_at", "updated_at",
    ),
    "customer_360_profiles": (
        "id", "company_id", "customer_id", "customer_name", "customer_code", "channel",
        "sub_channel", "tier", "region", "status", "total_revenue", "total_spend", "total_claims",
        "total_deductions", "net_revenue", "gross_margin_pct", "trade_spend_pct",
        "revenue_growth_pct", "avg_order_value", "order_frequency", "last_order_date",
        "active_promotions", "completed_promotions", "active_claims", "pending_deductions",
        "ltv_score", "churn_risk", "churn_reason", "segment", "price_sensitivity",
        "promo_responsiveness", "next_best_action", "health_score", "satisfaction_score",
        "engagement_score", "payment_reliability", "top_products", "top_categories",
        "monthly_revenue", "monthly_spend", "last_calculated_at", "notes", "data", "created_at",
        "updated_at",
    ),
    "customer_360_insights": (
        "id", "company_id", "customer_id", "insight_type", "category", "severity", "title",
        "description", "metric_name", "metric_value", "metric_unit", "benchmark_value",
        "variance_pct", "trend_direction", "recommendation", "action_taken", "action_date",
        "action_by", "valid_from", "valid_until", "confidence", "source", "data", "created_at",
        "updated_at",
    ),
    "report_templates": (
        "id", "company_id", "name", "description", "report_category", "report_type", "data_source",
        "columns", "filters", "grouping", "sorting", "calculations", "chart_config", "parameters",
        "is_system", "is_shared", "shared_with", "schedule_enabled", "schedule_frequency",
        "schedule_day", "schedule_time", "schedule_recipients", "last_run_at", "run_count",
        "created_by", "tags", "version", "status", "notes", "data", "created_at", "updated_at",
    ),
    "saved_reports": (
        "id", "company_id", "template_id", "name", "description", "report_category", "report_type",
        "data_source", "status", "filters_applied", "parameters_applied", "columns", "row_count",
        "report_data", "summary_data", "chart_data", "export_format", "export_url", "file_size",
        "generation_time_ms", "is_favorite", "is_shared", "shared_with", "expires_at",
        "generated_by", "tags", "notes", "data", "created_at", "updated_at",
    ),
    "report_schedules": (
        "id", "company_id", "template_id", "name", "description", "frequency", "day_of_week",
        "day_of_month", "time_of_day", "timezone", "recipients", "format", "filters", "parameters",
        "is_active", "last_run_at", "next_run_at", "run_count", "last_status", "last_error",
        "created_by", "notes", "data", "created_at", "updated_at",
    ),
    "rgm_initiatives": (
        "id", "company_id", "name", "description", "initiative_type", "status", "priority",
        "category", "customer_id", "customer_name", "product_id", "product_name", "channel",
        "region", "brand", "start_date", "end_date", "target_revenue", "target_margin_pct",
        "target_growth_pct", "actual_revenue", "actual_margin_pct", "actual_growth_pct",
        "baseline_revenue", "baseline_margin_pct", "investment_amount", "roi", "confidence_score",
        "risk_level", "owner", "approved_by", "approved_at", "created_by", "tags", "notes", "data",
        "created_at", "updated_at",
    ),
    "rgm_pricing_strategies": (
        "id", "company_id", "initiative_id", "name", "description", "strategy_type", "status",
        "product_id", "product_name", "category", "brand", "customer_id", "customer_name",
        "channel", "current_price", "recommended_price", "price_change_pct", "current_margin_pct",
        "projected_margin_pct", "price_elasticity", "volume_impact_pct", "revenue_impact",
        "margin_impact", "competitor_price", "price_index", "effective_date", "end_date",
        "approved_by", "approved_at", "created_by", "notes", "data", "created_at", "updated_at",
    ),
    "rgm_mix_analyses": (
        "id", "company_id", "initiative_id", "name", "description", "analysis_type", "status",
        "dimension", "period_start", "period_end", "total_revenue", "total_volume", "total_margin",
        "avg_margin_pct", "mix_score", "opportunity_value", "items", "recommendations",
        "created_by", "notes", "data", "created_at", "updated_at",
    ),
    "rgm_growth_trackers": (
        "id", "company_id", "initiative_id", "period", "period_start", "period_end", "metric_type",
        "dimension", "dimension_id", "dimension_name", "target_value", "actual_value",
        "prior_value", "variance", "variance_pct", "growth_pct", "contribution_pct",
        "trend_direction", "notes", "data", "created_at", "updated_at",
    ),
    "kpi_definitions": (
        "id", "company_id", "name", "description", "kpi_type", "category", "unit", "format",
        "calculation_method", "data_source", "source_table", "source_column", "aggregation",
        "frequency", "direction", "threshold_red", "threshold_amber", "threshold_green", "weight",
        "sort_order", "is_active", "owner", "tags", "notes", "data", "created_by", "created_at",
        "updated_at",
    ),
    "kpi_targets": (
        "id", "company_id", "kpi_id", "kpi_name", "period", "period_start", "period_end",
        "target_value", "stretch_target", "floor_value", "prior_year_value", "budget_value",
        "status", "approved_by", "approved_at", "notes", "data", "created_by", "created_at",
        "updated_at",
    ),
    "kpi_actuals": (
        "id", "company_id", "kpi_id", "kpi_name", "period", "period_start", "period_end",
        "actual_value", "target_value", "variance", "variance_pct", "achievement_pct",
        "trend_direction", "prior_period_value", "prior_year_value", "yoy_growth_pct",
        "mom_growth_pct", "ytd_actual", "ytd_target", "ytd_achievement_pct", "rag_status", "notes",
        "data", "created_by", "created_at", "updated_at",
    ),
    "executive_scorecards": (
        "id", "company_id", "name", "description", "scorecard_type", "status", "period",
        "period_start", "period_end", "overall_score", "overall_rag", "financial_score",
        "operational_score", "customer_score", "growth_score", "total_kpis", "green_count",
        "amber_count", "red_count", "highlights", "lowlights", "actions", "commentary",
        "published_at", "published_by", "notes", "data", "created_by", "created_at", "updated_at",
    ),
    "calendar_events": (
        "id", "company_id", "promotion_id", "promotion_name", "event_type", "title", "description",
        "start_date", "end_date", "duration_days", "customer_id", "customer_name", "product_id",
        "product_name", "category", "brand", "channel", "region", "mechanic", "status", "budget",
        "expected_lift", "actual_lift", "priority", "color", "is_recurring", "recurrence_pattern",
        "overlap_count", "tags", "notes", "data", "created_by", "created_at", "updated_at",
    ),
    "calendar_conflicts": (
        "id", "company_id", "event_a_id", "event_a_title", "event_b_id", "event_b_title",
        "conflict_type", "severity", "overlap_start", "overlap_end", "overlap_days",
        "shared_customer", "shared_product", "shared_channel", "impact_description", "resolution",
        "resolved_by", "resolved_at", "status", "notes", "data", "created_at", "updated_at",
    ),
    "calendar_coverage": (
        "id", "company_id", "analysis_period", "period_start", "period_end", "dimension",
        "dimension_id", "dimension_name", "total_days", "covered_days", "coverage_pct", "gap_days",
        "overlap_days", "event_count", "total_budget", "avg_daily_spend", "peak_day", "peak_count",
        "gaps", "recommendations", "notes", "data", "created_at", "updated_at",
    ),
}

ALWAYS_OVERFLOW_FIELDS: frozenset[str] = frozenset(
    {
        "mechanics",
        "financial",
        "period",
        "products",
        "customers",
        "approvals",
        "performance",
        "metrics",
        "settings",
        "permissions",
        "hierarchy",
        "contacts",
        "address",
        "allocations",
        "details",
        "lineItems",
        "email",
        "phone",
        "company",
        "notes",
        "description",
        "tags",
        "metadata",
    }
)

BOOLEAN_COLUMNS: frozenset[str] = frozenset({"read", "resolved", "locked"})

JSON_COLUMNS: frozenset[str] = frozenset({"permissions"})


def validate_identifier(name: str) -> str:
    if not isinstance(name, str) or not _IDENTIFIER_RE.fullmatch(name):
        raise StoreError(
            code="QUERY_INVALID_IDENTIFIER",
            message=f"invalid SQL identifier: {name!r}",
            error_class="validation",
            retryable=False,
            http_status=400,
        )
    return name


def camel_case(column: str) -> str:
    head, *rest = column.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


class SchemaRegistry:
    """Read-only lookup tables for one physical schema."""

    def __init__(
        self,
        *,
        collections: Mapping[str, str] | None = None,
        tables: Mapping[str, Iterable[str]] | None = None,
        always_overflow: Iterable[str] = ALWAYS_OVERFLOW_FIELDS,
        boolean_columns: Iterable[str] = BOOLEAN_COLUMNS,
        json_columns: Iterable[str] = JSON_COLUMNS,
    ) -> None:
        table_columns = TABLE_COLUMNS if tables is None else tables
        self._tables = MappingProxyType(
            {validate_identifier(t): frozenset(cols) for t, cols in table_columns.items()}
        )
        self._collections = MappingProxyType(dict(COLLECTION_TABLES if collections is None else collections))
        self._always_overflow = frozenset(always_overflow)
        self._json_columns = frozenset(json_columns)

        column_fields: dict[str, str] = {}
        flags = set(boolean_columns)
        for columns in self._tables.values():
            for column in columns:
                if column.startswith("is_"):
                    flags.add(column)
                if column == ID_COLUMN:
                    continue
                column_fields[column] = camel_case(column)
        self._boolean_columns = frozenset(flags)
        self._column_fields = MappingProxyType(column_fields)
        self._field_columns = MappingProxyType({f: c for c, f in column_fields.items()})

    def table_for(self, collection: str) -> str:
        return self._collections.get(collection, collection)

    def resolve_table(self, collection: str, *, strict: bool = False) -> str:
        table = self._collections.get(collection)
        if table is not None:
            return table
        if collection in self._tables:
            return collection
        if strict:
            raise StoreError(
                code="SCHEMA_UNKNOWN_COLLECTION",
                message=f"unknown collection: {collection}",
                error_class="validation",
                retryable=False,
                http_status=404,
            )
        logger.warning("docstore_unknown_collection collection=%s", collection)
        return validate_identifier(collection)

    def column_for(self, field: str) -> str:
        if field in (ID_FIELD, LEGACY_ID_FIELD):
            return ID_COLUMN
        return self._field_columns.get(field, field)

    def field_for(self, column: str) -> str:
        if column == ID_COLUMN:
            return ID_FIELD
        return self._column_fields.get(column, column)

    def allowed_columns(self, table: str) -> frozenset[str] | None:
        return self._tables.get(table)

    def has_column(self, table: str, column: str) -> bool:
        allowed = self._tables.get(table)
        return allowed is None or column in allowed

    def is_known_table(self, table: str) -> bool:
        return table in self._tables

    def is_always_overflow(self, field: str) -> bool:
        return field in self._always_overflow

    def is_boolean_column(self, column: str) -> bool:
        return column in self._boolean_columns

    def is_json_column(self, column: str) -> bool:
        return column in self._json_columns


DEFAULT_REGISTRY = SchemaRegistry()
