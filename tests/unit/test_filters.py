"""Unit tests for sample filters."""

import pytest
import numpy as np
import pandas as pd

from housing_spillover.data.filters import (
    filter_matched_sales,
    apply_distance_filter,
    apply_group_filter,
    apply_non_negative_filter,
    apply_positive_filter,
    apply_not_null_filter,
    apply_year_window_filter,
    drop_duplicate_sales,
    apply_price_cap_filter,
    validate_filtered_data
)


class TestIndividualFilters:
    """Test each filter predicate."""
    
    def test_distance_filter(self, matched_sales):
        result = apply_distance_filter(matched_sales, max_distance=1.0)
        assert 'A8' not in result['apn'].values
        assert len(result) == 8
    
    def test_distance_filter_boundary(self):
        df = pd.DataFrame({'distance_miles': [0.99, 1.0, 1.01]})
        result = apply_distance_filter(df, max_distance=1.0)
        assert result['distance_miles'].tolist() == [0.99, 1.0]
    
    def test_group_filter(self, matched_sales):
        result = apply_group_filter(matched_sales)
        assert 'other' not in result['group'].values
        assert len(result) == 8
    
    def test_non_negative_keeps_missing(self, matched_sales):
        result = apply_non_negative_filter(matched_sales, 'age')
        assert 'A6' not in result['apn'].values
        assert 'A7' in result['apn'].values
        assert 'A4' in result['apn'].values
    
    def test_positive_filter(self, matched_sales):
        result = apply_positive_filter(matched_sales, 'square_footage')
        assert 'A5' not in result['apn'].values
        
        result = apply_positive_filter(matched_sales, 'amount')
        assert 'A4' not in result['apn'].values
    
    def test_not_null_filter(self, matched_sales):
        result = apply_not_null_filter(matched_sales, 'age')
        assert 'A7' not in result['apn'].values
        assert len(result) == 8
    
    def test_year_window_filter(self):
        df = pd.DataFrame({
            'sale_year': [2010, 2010, 2010, 2010],
            'housing_year': [2005, 2004, 2015, 2016]
        })
        result = apply_year_window_filter(df, max_year_gap=5)
        assert result['housing_year'].tolist() == [2005, 2015]
    
    def test_drop_duplicates(self, matched_sales):
        doubled = pd.concat([matched_sales, matched_sales.iloc[[0]]], ignore_index=True)
        result = drop_duplicate_sales(doubled)
        assert len(result) == len(matched_sales)
    
    def test_price_cap_inclusive(self, matched_sales):
        result = apply_price_cap_filter(matched_sales, max_amount=10_000_000)
        assert 'A2' in result['apn'].values
        assert 'A3' not in result['apn'].values
    
    def test_filters_do_not_mutate_input(self, matched_sales):
        original = matched_sales.copy()
        apply_distance_filter(matched_sales)
        apply_price_cap_filter(matched_sales)
        pd.testing.assert_frame_equal(matched_sales, original)


class TestFilterMatchedSales:
    """Test the full filter chain."""
    
    def test_survivors(self, matched_sales):
        result = filter_matched_sales(matched_sales)
        assert sorted(result['apn'].tolist()) == ['A1', 'A2']
    
    def test_idempotent(self, matched_sales):
        once = filter_matched_sales(matched_sales)
        twice = filter_matched_sales(once)
        pd.testing.assert_frame_equal(once, twice)
    
    def test_custom_thresholds(self, matched_sales):
        result = filter_matched_sales(
            matched_sales, max_distance=1.5, max_amount=20_000_000
        )
        # A8 is now close enough; A3 is under the raised cap
        assert sorted(result['apn'].tolist()) == ['A1', 'A2', 'A3', 'A8']
    
    def test_tight_year_window(self, matched_sales):
        result = filter_matched_sales(matched_sales, max_year_gap=1)
        assert len(result) == 0
    
    def test_empty_input(self, matched_sales):
        result = filter_matched_sales(matched_sales.iloc[0:0])
        assert len(result) == 0
        assert list(result.columns) == list(matched_sales.columns)


class TestValidateFilteredData:
    """Test post-filter validation."""
    
    def test_valid(self, matched_sales):
        is_valid, message = validate_filtered_data(filter_matched_sales(matched_sales))
        assert is_valid
        assert message == "Data validation passed"
    
    def test_empty(self, matched_sales):
        is_valid, message = validate_filtered_data(matched_sales.iloc[0:0])
        assert not is_valid
        assert "No sales" in message
    
    def test_missing_columns(self, matched_sales):
        is_valid, message = validate_filtered_data(matched_sales.drop(columns=['tract']))
        assert not is_valid
        assert "tract" in message
    
    def test_other_rows(self, matched_sales):
        df = matched_sales[matched_sales['apn'].isin(['A1', 'A9'])]
        is_valid, message = validate_filtered_data(df)
        assert not is_valid
