from flask_wtf import FlaskForm
from wtforms import StringField, SelectField, IntegerField, DecimalField, DateField, SubmitField
from wtforms.validators import DataRequired, InputRequired, NumberRange, Optional, Length, ValidationError
from models.product import Product, PRODUCT_STATUSES

class ProductForm(FlaskForm):
    code = StringField('Product code', validators=[DataRequired(), Length(max=50)])
    name = StringField('Product name', validators=[DataRequired(), Length(max=200)])
    generic_name = StringField('Generic name', validators=[Optional(), Length(max=200)])
    barcode = StringField('Barcode', validators=[Optional(), Length(max=100)])
    category = SelectField('Category', coerce=int, validators=[Optional()])
    unit = SelectField('Unit', coerce=int, validators=[Optional()])
    strength = StringField('Strength', validators=[Optional(), Length(max=100)])
    dosage_form = StringField('Dosage form', validators=[Optional(), Length(max=100)])
    min_stock = IntegerField('Minimum stock', default=0, validators=[InputRequired(), NumberRange(min=0)])
    max_stock = IntegerField('Maximum stock', validators=[Optional(), NumberRange(min=0)])
    reorder_level = IntegerField('Reorder level', default=0, validators=[InputRequired(), NumberRange(min=0)])
    status = SelectField('Status', choices=[(s, s.title()) for s in PRODUCT_STATUSES], default='ACTIVE')
    submit = SubmitField('Save')

    def __init__(self, *args, product_id=None, **kwargs):
        super().__init__(*args, **kwargs)
        self._product_id = product_id

    def _taken(self, column, value):
        query = Product.query.filter(column == value)
        if self._product_id:
            query = query.filter(Product.id != self._product_id)
        return query.first() is not None

    def validate_code(self, field):
        if self._taken(Product.code, field.data):
            raise ValidationError('Product code already exists')

    def validate_barcode(self, field):
        if field.data and self._taken(Product.barcode, field.data):
            raise ValidationError('Barcode already assigned to another product')

    def validate_max_stock(self, field):
        if field.data is not None and self.min_stock.data is not None and field.data < self.min_stock.data:
            raise ValidationError('Maximum stock must not be below minimum stock')

class ReceiveStockForm(FlaskForm):
    store = SelectField('Store', coerce=int, validators=[DataRequired()])
    batch_number = StringField('Batch number', validators=[DataRequired(), Length(max=100)])
    expiry_date = DateField('Expiry date', validators=[DataRequired()])
    quantity = IntegerField('Quantity', validators=[DataRequired(), NumberRange(min=1)])
    unit_cost = DecimalField('Unit cost', places=2, validators=[InputRequired(), NumberRange(min=0)])
    selling_price = DecimalField('Selling price', places=2, validators=[InputRequired(), NumberRange(min=0)])
    submit = SubmitField('Receive stock')
