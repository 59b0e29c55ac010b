"""
Bike-share Station Traffic Map - Streamlit GUI Application

This module provides the Streamlit entry point for the station traffic
overlay. Run with ``streamlit run app.py``.
"""

import logging

import streamlit as st

from station_traffic.maps import render_station_traffic_page

# Configure logging
logging.basicConfig(level=logging.INFO)

# Configure Streamlit page
st.set_page_config(
    page_title="Bike-share Station Traffic",
    page_icon="🚲",
    layout="wide",
    initial_sidebar_state="collapsed"
)


def main():
    """Main application entry point"""
    render_station_traffic_page()


if __name__ == "__main__":
    main()
