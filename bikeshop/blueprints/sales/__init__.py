from flask import Blueprint

sales_bp = Blueprint('sales', __name__)
