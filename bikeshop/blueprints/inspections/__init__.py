from flask import Blueprint

inspections_bp = Blueprint('inspections', __name__)
