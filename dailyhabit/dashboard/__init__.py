"""Web dashboard for the habit tracker"""
