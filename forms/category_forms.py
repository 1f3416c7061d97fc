from flask_wtf import FlaskForm
from wtforms import StringField, SubmitField
from wtforms.validators import DataRequired, Length, Optional

class CategoryForm(FlaskForm):
    name = StringField('Category name', validators=[DataRequired(), Length(max=120)])
    description = StringField('Description', validators=[Optional(), Length(max=255)])
    submit = SubmitField('Save')

class UnitForm(FlaskForm):
    name = StringField('Unit name', validators=[DataRequired(), Length(max=50)])
    symbol = StringField('Symbol', validators=[Optional(), Length(max=10)])
    submit = SubmitField('Save unit')

class StoreForm(FlaskForm):
    name = StringField('Store name', validators=[DataRequired(), Length(max=100)])
    address = StringField('Address', validators=[Optional(), Length(max=255)])
    phone = StringField('Phone', validators=[Optional(), Length(max=20)])
    submit = SubmitField('Save store')

class CustomerForm(FlaskForm):
    name = StringField('Customer name', validators=[DataRequired(), Length(max=128)])
    phone = StringField('Phone', validators=[Optional(), Length(max=32)])
    email = StringField('Email', validators=[Optional(), Length(max=120)])
    submit = SubmitField('Save')
